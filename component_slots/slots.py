import weakref
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Type, Union

from django.utils.html import conditional_escape, html_safe
from django.utils.safestring import SafeString, mark_safe
from inflection import singularize

from component_slots.app_settings import PluralWriteMode, app_settings

if TYPE_CHECKING:
    from component_slots.component import Component


class SlotError(Exception):
    pass


class DuplicateSlotDeclarationError(SlotError):
    def __init__(self, slot_name: str, component_name: str):
        self.slot_name = slot_name
        self.component_name = component_name
        super().__init__(f"'{slot_name}' slot declared multiple times on component '{component_name}'")


DuplicateSlotError = DuplicateSlotDeclarationError


class UnknownSlotError(SlotError):
    def __init__(self, slot_name: str, valid_names: Sequence[str], component_name: str):
        self.slot_name = slot_name
        self.valid_names = sorted(valid_names)
        self.component_name = component_name
        super().__init__(
            f"Unknown slot '{slot_name}' on component '{component_name}' - expected one of {self.valid_names}"
        )


#######################
# RESOLVERS
#######################


@dataclass(frozen=True)
class ContentResult:
    """Replacement content produced by a callable resolver."""

    content: Any


@dataclass(frozen=True)
class ComponentInstanceResult:
    """Nested component instance produced by a resolver."""

    component: "Component"


ResolverResult = Union[ContentResult, ComponentInstanceResult]


class Resolver:
    """
    Turns the arguments of a slot write into the slot's content or nested component.

    Returning `None` leaves the slot with its captured content.
    """

    def resolve(self, slot: "SlotValue", args: Sequence[Any], kwargs: Dict[str, Any]) -> Optional[ResolverResult]:
        raise NotImplementedError


@dataclass(frozen=True)
class NoResolver(Resolver):
    def resolve(self, slot, args, kwargs):
        return None


@dataclass(frozen=True)
class ComponentResolver(Resolver):
    component_class: Type["Component"]

    def resolve(self, slot, args, kwargs):
        return ComponentInstanceResult(self.component_class(*args, **kwargs))


@dataclass(frozen=True)
class CallableResolver(Resolver):
    """
    Calls `func(slot, *args, **kwargs)` when the slot is set.

    A `Component` instance returned by `func` becomes the slot's nested component.
    `None` keeps the captured content. Any other value replaces the captured
    content, and is escaped unless marked safe.
    """

    func: Callable[..., Any]

    def resolve(self, slot, args, kwargs):
        from component_slots.component import Component

        # The slot is passed first, so the function can read or set attributes on it,
        # e.g. `slot.content` or `slot.title = title`.
        result = self.func(slot, *args, **kwargs)
        if result is None:
            return None
        if isinstance(result, Component):
            return ComponentInstanceResult(result)
        return ContentResult(result)


def as_resolver(value: Any) -> Resolver:
    from component_slots.component import Component

    if value is None:
        return NoResolver()
    if isinstance(value, Resolver):
        return value
    if isinstance(value, type) and issubclass(value, Component):
        return ComponentResolver(value)
    if callable(value):
        return CallableResolver(value)
    raise TypeError(
        f"Slot resolver must be None, a Component subclass or a callable, got: {value!r}"
    )


#######################
# DECLARATIONS
#######################


@dataclass(frozen=True)
class SlotDeclaration:
    name: str
    collection: bool
    resolver: Resolver
    # Name of the single-item setter of a collection slot, e.g. "item" for "items"
    singular_name: Optional[str] = None

    @property
    def storage_key(self) -> str:
        return f"_{self.name}_slot"


@html_safe
class SlotValue:
    """
    One filled slot.

    Holds the content captured when the slot was set and, if the slot's resolver
    produced one, a nested component instance. Converting the slot to a string
    renders it: the nested component, with the captured content as its own
    content, or else the captured content as is.

    Callable resolvers may set extra attributes on the slot, which templates can
    then read, e.g. `{{ item.title }}`.
    """

    def __init__(self, owner: "Component"):
        self._owner_ref = weakref.ref(owner)
        self.content: Optional[SafeString] = None
        self.component: Optional["Component"] = None

    @property
    def owner(self) -> "Component":
        owner = self._owner_ref()
        if owner is None:
            raise RuntimeError("Cannot render slot, its owning component no longer exists.")
        return owner

    def render(self) -> SafeString:
        if self.component is not None:
            return self.owner.render_component(self.component, content=self.content)
        if self.content is None:
            return mark_safe("")
        return conditional_escape(self.content)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} content={self.content!r} component={self.component!r}>"


#######################
# ACCESSORS
#######################


def is_slot_collection(value: Any) -> bool:
    """Whether the first argument of a plural slot call should be iterated over."""
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, Mapping))


class SlotAccessor:
    """
    Bound to one component instance. Calling it without arguments reads the slot,
    calling it with arguments or with `content` sets it.
    """

    def __init__(self, component: "Component", slot_name: str):
        self.component = component
        self.slot_name = slot_name

    def __call__(self, *args: Any, content: Any = None, **kwargs: Any) -> Any:
        if not args and not kwargs and content is None:
            return self.component.get_slot(self.slot_name)
        self.component.set_slot(self.slot_name, *args, content=content, **kwargs)
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self.slot_name}' of {self.component!r}>"


class CollectionSlotAccessor(SlotAccessor):
    def __call__(self, *args: Any, content: Any = None, **kwargs: Any) -> Any:
        if not args and not kwargs and content is None:
            return self.component.get_slot(self.slot_name)

        infer = app_settings.PLURAL_WRITE_MODE == PluralWriteMode.INFER
        if infer and args and is_slot_collection(args[0]):
            self.add_many(*args, content=content, **kwargs)
        else:
            self.add_one(*args, content=content, **kwargs)
        return None

    def add_one(self, *args: Any, content: Any = None, **kwargs: Any) -> None:
        self.component.set_slot(self.slot_name, *args, content=content, **kwargs)

    def add_many(self, items: Iterable, *args: Any, content: Any = None, **kwargs: Any) -> None:
        """Set one item per element of `items`, passing the element as the first argument."""
        for item in items:
            self.component.set_slot(self.slot_name, item, *args, content=content, **kwargs)


class SlotSetter(SlotAccessor):
    # Prevent Django templates from calling it
    alters_data = True

    def __call__(self, *args: Any, content: Any = None, **kwargs: Any) -> None:
        self.component.set_slot(self.slot_name, *args, content=content, **kwargs)


#######################
# DESCRIPTORS
#######################


class RendersOne:
    """
    Declares a slot that holds a single value.

    Usage:

    ```py
    class Card(Component):
        title = RendersOne()
        footer = RendersOne(lambda slot, classes="": format_html('<footer class="{}">{}</footer>', classes, slot.content))
    ```

    The resolver may be `None`, a `Component` subclass (instantiated with the
    write's arguments) or a callable (called with the slot and the write's arguments).
    """

    collection = False
    accessor_class: Type[SlotAccessor] = SlotAccessor

    def __init__(self, resolver: Any = None):
        self.resolver = as_resolver(resolver)
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Optional["Component"], owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return self.accessor_class(instance, self.name)

    @property
    def singular_name(self) -> Optional[str]:
        return None

    def get_declaration(self) -> SlotDeclaration:
        if self.name is None:
            raise RuntimeError(f"{type(self).__name__} was used before being bound to a name")
        return SlotDeclaration(
            name=self.name,
            collection=self.collection,
            resolver=self.resolver,
            singular_name=self.singular_name,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self.name}' resolver={self.resolver!r}>"


class RendersMany(RendersOne):
    """
    Declares a slot that holds an ordered list of values.

    Next to the plural accessor (e.g. `items`), a singular setter (e.g. `item`)
    is added to the component class. The singular name defaults to
    `inflection.singularize(name)`.
    """

    collection = True
    accessor_class = CollectionSlotAccessor

    def __init__(self, resolver: Any = None, singular_name: Optional[str] = None):
        super().__init__(resolver)
        self._singular_name = singular_name

    @property
    def singular_name(self) -> Optional[str]:
        if self.name is None:
            return self._singular_name
        singular_name = self._singular_name or singularize(self.name)
        if singular_name == self.name:
            return None
        return singular_name


class SlotAlias:
    """Class attribute under a collection slot's singular name, always writes one item."""

    def __init__(self, slot_name: str):
        self.slot_name = slot_name

    def __get__(self, instance: Optional["Component"], owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return SlotSetter(instance, self.slot_name)


class SlotDeclarationNamespace(dict):
    """
    Class body namespace that refuses to declare the same slot twice.

    A plain class body would silently keep only the last of two same-named
    attributes, so the check has to happen while the body executes.
    """

    def __setitem__(self, key: str, value: Any) -> None:
        if isinstance(value, RendersOne) and isinstance(self.get(key), RendersOne):
            raise DuplicateSlotDeclarationError(key, self.get("__qualname__", "<unknown>"))
        super().__setitem__(key, value)


SlotStorage = Union[SlotValue, List[SlotValue]]
