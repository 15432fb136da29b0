from django.apps import AppConfig


class ComponentSlotsConfig(AppConfig):
    name = "component_slots"

    # This is the code that gets run when user adds component_slots
    # to Django's INSTALLED_APPS
    def ready(self) -> None:
        from component_slots import autodiscover

        autodiscover()
