import importlib
from typing import List

from django.utils.module_loading import autodiscover_modules

from component_slots.app_settings import PluralWriteMode
from component_slots.component import Component, ComponentMeta
from component_slots.component_registry import AlreadyRegistered, ComponentRegistry, NotRegistered, register, registry
from component_slots.slots import (
    CallableResolver,
    CollectionSlotAccessor,
    ComponentInstanceResult,
    ComponentResolver,
    ContentResult,
    DuplicateSlotDeclarationError,
    DuplicateSlotError,
    NoResolver,
    RendersMany,
    RendersOne,
    Resolver,
    SlotAccessor,
    SlotDeclaration,
    SlotError,
    SlotSetter,
    SlotValue,
    UnknownSlotError,
    as_resolver,
)

__all__ = [
    "AlreadyRegistered",
    "CallableResolver",
    "CollectionSlotAccessor",
    "Component",
    "ComponentInstanceResult",
    "ComponentMeta",
    "ComponentRegistry",
    "ComponentResolver",
    "ContentResult",
    "DuplicateSlotDeclarationError",
    "DuplicateSlotError",
    "NoResolver",
    "NotRegistered",
    "PluralWriteMode",
    "RendersMany",
    "RendersOne",
    "Resolver",
    "SlotAccessor",
    "SlotDeclaration",
    "SlotError",
    "SlotSetter",
    "SlotValue",
    "UnknownSlotError",
    "as_resolver",
    "autodiscover",
    "register",
    "registry",
]


def autodiscover() -> List[str]:
    """
    Import the modules that define components, so that they get registered.

    Returns the list of imported library modules.
    """
    from component_slots.app_settings import app_settings

    if app_settings.AUTODISCOVER:
        # Autodetect a components.py file in each app directory
        autodiscover_modules("components")

    imported_modules = []
    for path in app_settings.LIBRARIES:
        importlib.import_module(path)
        imported_modules.append(path)
    return imported_modules
