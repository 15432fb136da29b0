from enum import Enum
from typing import Any, Dict, List

from django.conf import settings


class PluralWriteMode(Enum):
    # Iterate the first positional arg of a plural accessor call if it is a collection
    INFER = "infer"
    # Plural accessor calls always write exactly one item
    SINGLE = "single"


class AppSettings:
    @property
    def settings(self) -> Dict[str, Any]:
        return getattr(settings, "COMPONENT_SLOTS", {})

    @property
    def AUTODISCOVER(self) -> bool:
        return self.settings.get("autodiscover", True)

    @property
    def LIBRARIES(self) -> List[str]:
        return self.settings.get("libraries", [])

    @property
    def PLURAL_WRITE_MODE(self) -> PluralWriteMode:
        raw_value = self.settings.get("plural_write_mode", PluralWriteMode.INFER.value)
        return self._validate_plural_write_mode(raw_value)

    def _validate_plural_write_mode(self, raw_value) -> PluralWriteMode:
        try:
            return PluralWriteMode(raw_value)
        except ValueError:
            valid_values = [mode.value for mode in PluralWriteMode]
            raise ValueError(f"Invalid plural write mode: {raw_value}. Valid options are {valid_values}")


app_settings = AppSettings()
