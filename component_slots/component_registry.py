from typing import TYPE_CHECKING, Callable, Dict, Iterable, Type

from component_slots.logger import trace

if TYPE_CHECKING:
    from component_slots.component import Component


class AlreadyRegistered(Exception):
    pass


class NotRegistered(Exception):
    def __init__(self, name: str, registered_names: Iterable[str]):
        self.name = name
        self.registered_names = sorted(registered_names)
        super().__init__(f'The component "{name}" is not registered - registered components: {self.registered_names}')


class ComponentRegistry(object):
    """Maps the names used by `{% component %}` to component classes."""

    def __init__(self):
        self._registry: Dict[str, Type["Component"]] = {}  # component name -> component_class mapping

    def register(self, name: str, component: Type["Component"]) -> None:
        from component_slots.component import Component

        # Slots are declared on the class, so only classes can be rendered by name.
        if not (isinstance(component, type) and issubclass(component, Component)):
            raise TypeError(f'Cannot register "{name}": expected a Component subclass, got {component!r}')

        existing_component = self._registry.get(name)
        if existing_component and existing_component is not component:
            raise AlreadyRegistered('The component "%s" has already been registered' % name)
        self._registry[name] = component
        trace(f"REGISTER COMP {component.__name__} AS '{name}' slots={sorted(component.registered_slots)}")

    def unregister(self, name: str) -> None:
        self.get(name)

        del self._registry[name]

    def get(self, name: str) -> Type["Component"]:
        if name not in self._registry:
            raise NotRegistered(name, self._registry)

        return self._registry[name]

    def all(self) -> Dict[str, Type["Component"]]:
        return self._registry

    def clear(self) -> None:
        self._registry = {}


# This variable represents the global component registry
registry = ComponentRegistry()


def register(name: str) -> Callable[[Type["Component"]], Type["Component"]]:
    """Class decorator to register a component.

    Usage:

    @register("card")
    class Card(component.Component):
        title = RendersOne()
        ...
    """

    def decorator(component):
        registry.register(name=name, component=component)
        return component

    return decorator
