from typing import Any, ClassVar, Dict, List, Optional, Set

from django.core.exceptions import ImproperlyConfigured
from django.template.base import Template
from django.template.context import Context
from django.template.loader import get_template
from django.utils.html import conditional_escape
from django.utils.safestring import SafeString, mark_safe

# Registry var and register() live in a separate module, the template tags
# depend on them as much as this module does.
from component_slots.component_registry import (  # NOQA
    AlreadyRegistered,
    ComponentRegistry,
    NotRegistered,
    register,
    registry,
)
from component_slots.logger import trace_slot_msg
from component_slots.slots import (
    CollectionSlotAccessor,
    ComponentInstanceResult,
    ContentResult,
    DuplicateSlotDeclarationError,
    RendersMany,
    RendersOne,
    SlotAccessor,
    SlotAlias,
    SlotDeclaration,
    SlotDeclarationNamespace,
    SlotStorage,
    SlotValue,
    UnknownSlotError,
)


class ComponentMeta(type):
    @classmethod
    def __prepare__(mcs, name, bases, **kwargs):
        return SlotDeclarationNamespace()

    def __new__(mcs, name, bases, attrs, **kwargs):
        cls = super().__new__(mcs, name, bases, dict(attrs), **kwargs)

        # Each class gets its own copy of the inherited slots, so that declaring
        # a slot on a subclass is never visible on the parent or on siblings.
        # Ancestors are walked in reverse MRO and contribute only the slots they
        # declared themselves, so name clashes resolve the same way as attributes.
        registered_slots: Dict[str, SlotDeclaration] = {}
        for klass in reversed(cls.__mro__[1:]):
            own_slots = klass.__dict__.get("registered_slots", {})
            for slot_name in klass.__dict__.get("_declared_slot_names", ()):
                registered_slots[slot_name] = own_slots[slot_name]
        cls.registered_slots = registered_slots
        cls._declared_slot_names = set()

        for value in attrs.values():
            if isinstance(value, RendersOne):
                cls.validate_slot_name(value.name)
                cls._register_slot(value)

        return cls


class Component(metaclass=ComponentMeta):
    # Must be set on subclass OR subclass must implement get_template_name() with
    # non-null return, OR override call().
    template_name: ClassVar[str]
    template: ClassVar[Optional[str]] = None

    registered_slots: ClassVar[Dict[str, SlotDeclaration]]
    _declared_slot_names: ClassVar[Set[str]]

    # Per-render state. Declared on the class so that subclasses may define
    # `__init__` without calling `super().__init__()`.
    _view_context: Optional[Context] = None
    _content: Optional[SafeString] = None

    #######################
    # SLOT DECLARATION
    #######################

    @classmethod
    def renders_one(cls, slot_name: str, resolver: Any = None) -> None:
        """
        Declare a single-value slot after the class was created.

        Equivalent to `slot_name = RendersOne(resolver)` in the class body.
        """
        cls.validate_slot_name(slot_name)
        descriptor = RendersOne(resolver)
        descriptor.__set_name__(cls, slot_name)
        setattr(cls, slot_name, descriptor)
        cls._register_slot(descriptor)

    @classmethod
    def renders_many(cls, slot_name: str, resolver: Any = None, singular_name: Optional[str] = None) -> None:
        """
        Declare a collection slot after the class was created.

        Equivalent to `slot_name = RendersMany(resolver)` in the class body.
        """
        cls.validate_slot_name(slot_name)
        descriptor = RendersMany(resolver, singular_name=singular_name)
        descriptor.__set_name__(cls, slot_name)
        setattr(cls, slot_name, descriptor)
        cls._register_slot(descriptor)

    @classmethod
    def validate_slot_name(cls, slot_name: str) -> None:
        # Only slots declared by this very class count. Inherited slots may be
        # redeclared (overridden) by subclasses.
        if slot_name in cls._declared_slot_names:
            raise DuplicateSlotDeclarationError(slot_name, cls.__name__)

    @classmethod
    def _register_slot(cls, descriptor: RendersOne) -> None:
        declaration = descriptor.get_declaration()
        cls.registered_slots[declaration.name] = declaration
        cls._declared_slot_names.add(declaration.name)

        # Don't override attributes defined by the class itself, e.g. a slot
        # that happens to be named like the singular form.
        singular_name = declaration.singular_name
        if singular_name and singular_name not in cls.__dict__:
            setattr(cls, singular_name, SlotAlias(declaration.name))

        trace_slot_msg(
            "DECLARE",
            cls.__name__,
            declaration.name,
            f"collection={declaration.collection} resolver={type(declaration.resolver).__name__}",
        )

    #######################
    # SLOT READ / WRITE
    #######################

    def _get_slot_declaration(self, slot_name: str) -> SlotDeclaration:
        try:
            return self.registered_slots[slot_name]
        except KeyError:
            raise UnknownSlotError(slot_name, list(self.registered_slots), type(self).__name__) from None

    def get_slot(self, slot_name: str) -> Any:
        """
        Return the value of a slot.

        Singular slots give their `SlotValue`, or `None` if never set. Collection
        slots give a list of `SlotValue`s in the order they were set, which is
        empty if the slot was never set.
        """
        declaration = self._get_slot_declaration(slot_name)
        stored: Optional[SlotStorage] = getattr(self, declaration.storage_key, None)

        trace_slot_msg("GET", type(self).__name__, slot_name, component_id=id(self))

        if declaration.collection:
            return list(stored) if stored is not None else []
        return stored

    def set_slot(self, slot_name: str, *args: Any, content: Any = None, **kwargs: Any) -> None:
        """
        Fill a slot.

        `content` is the block that gives the slot its content. It is captured
        right away, before the slot's resolver runs. `args` and `kwargs` go
        to the resolver.

        Singular slots are overwritten, collection slots are appended to.
        """
        declaration = self._get_slot_declaration(slot_name)

        slot = SlotValue(self)
        slot.content = self.capture(content)

        result = declaration.resolver.resolve(slot, args, kwargs)
        if isinstance(result, ComponentInstanceResult):
            slot.component = result.component
        elif isinstance(result, ContentResult):
            slot.content = conditional_escape(result.content)

        if declaration.collection:
            stored: Optional[List[SlotValue]] = getattr(self, declaration.storage_key, None)
            if stored is None:
                stored = []
                setattr(self, declaration.storage_key, stored)
            stored.append(slot)
        else:
            setattr(self, declaration.storage_key, slot)

        trace_slot_msg(
            "SET",
            type(self).__name__,
            slot_name,
            f"collection={declaration.collection} nested={type(slot.component).__name__ if slot.component else None}",
            component_id=id(self),
        )

    def fill_slot(self, accessor_name: str, *args: Any, content: Any = None, **kwargs: Any) -> Any:
        """
        Call a slot accessor by name, as if calling `getattr(component, accessor_name)(...)`.

        `accessor_name` is either a slot name or the singular name of
        a collection slot.
        """
        declaration = self.registered_slots.get(accessor_name)
        if declaration is not None:
            accessor_class = CollectionSlotAccessor if declaration.collection else SlotAccessor
            return accessor_class(self, accessor_name)(*args, content=content, **kwargs)

        for declaration in self.registered_slots.values():
            if declaration.singular_name == accessor_name:
                self.set_slot(declaration.name, *args, content=content, **kwargs)
                return None

        valid_names = list(self.registered_slots)
        raise UnknownSlotError(accessor_name, valid_names, type(self).__name__)

    #######################
    # RENDERING
    #######################

    @property
    def content(self) -> SafeString:
        """The content given to this component when rendered, or an empty string."""
        if self._content is None:
            return mark_safe("")
        return self._content

    @property
    def view_context(self) -> Context:
        """Context the component is being rendered in."""
        if self._view_context is None:
            self._view_context = Context()
        return self._view_context

    def get_context_data(self) -> Dict[str, Any]:
        return {}

    # Can be overridden for dynamic templates
    def get_template_name(self, context) -> str:
        try:
            name = self.template_name
        except AttributeError:
            raise ImproperlyConfigured(
                f"Template name is not set for Component {type(self).__name__}. "
                f"Note: this attribute is not required if you are overriding any of "
                f"the class's `get_template*()` methods or `call()`."
            )
        return name

    def get_template_string(self, context) -> Optional[str]:
        return self.template

    def get_template(self, context) -> Template:
        template_string = self.get_template_string(context)
        if template_string is not None:
            return Template(template_string)
        else:
            template_name = self.get_template_name(context)
            template: Template = get_template(template_name).template
            return template

    def capture(self, block: Any) -> Optional[SafeString]:
        """
        Turn a content block into markup.

        The block may be a callable, which is called exactly once, or the
        content itself. Strings not marked as safe are escaped.
        """
        if callable(block):
            block = block()
        if block is None:
            return None
        return conditional_escape(block)

    def call(self) -> Any:
        """Produce the component's markup. Renders the component's template by default."""
        context = self.view_context
        template = self.get_template(context)
        with context.update({"component": self, **self.get_context_data()}):
            return template.render(context)

    def render(self, context: Optional[Context] = None, content: Any = None) -> SafeString:
        """
        Render the component in given context.

        `content` is captured as the component's content region, available as
        `component.content` in the template.
        """
        self._view_context = context if context is not None else Context()
        self._content = self.capture(content)
        output = self.call()
        if output is None:
            return mark_safe("")
        return conditional_escape(output)

    def render_component(self, component: "Component", content: Any = None) -> SafeString:
        """Render a nested component within this component's rendering context."""
        return component.render(self.view_context, content=content)
