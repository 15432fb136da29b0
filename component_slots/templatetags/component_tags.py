from functools import partial
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Type

import django.template
from django.template import Context
from django.template.base import FilterExpression, Node, NodeList, TextNode
from django.template.defaulttags import CommentNode
from django.template.exceptions import TemplateSyntaxError
from django.template.library import parse_bits

from component_slots.component_registry import registry as component_registry

if TYPE_CHECKING:
    from component_slots.component import Component


register = django.template.Library()


class FillNode(Node):
    """
    Sets a slot of the enclosing `{% component %}`. The tag's body becomes the
    slot's content, its arguments go to the slot's resolver.
    """

    def __init__(
        self,
        name_fexp: FilterExpression,
        context_args: List[FilterExpression],
        context_kwargs: Dict[str, FilterExpression],
        nodelist: NodeList,
    ):
        self.name_fexp = name_fexp
        self.context_args = context_args
        self.context_kwargs = context_kwargs
        self.nodelist = nodelist

    def __repr__(self):
        return f"<{type(self).__name__} Name: {self.name_fexp}. Contents: {repr(self.nodelist)}.>"

    def render(self, context):
        raise TemplateSyntaxError(
            "{% fill ... %} block cannot be rendered directly. "
            "You are probably seeing this because you have used one outside "
            "a {% component %} context."
        )

    def fill(self, component: "Component", context: Context) -> None:
        # Variables in the fill tag and its body resolve against the outer context.
        slot_name = self.name_fexp.resolve(context)
        resolved_args = [safe_resolve(arg, context) for arg in self.context_args]
        resolved_kwargs = {key: safe_resolve(kwarg, context) for key, kwarg in self.context_kwargs.items()}
        component.fill_slot(
            slot_name,
            *resolved_args,
            content=partial(self.nodelist.render, context),
            **resolved_kwargs,
        )


@register.tag("fill")
def do_fill(parser, token):
    """
    Usage:

    ```
    {% component "card" %}
        {% fill "title" %}Hello{% endfill %}
        {% fill "item" name="A" %}First{% endfill %}
    {% endcomponent %}
    ```

    This tag is available only within a {% component %}..{% endcomponent %} block.
    """
    bits = token.split_contents()
    slot_name, context_args, context_kwargs = parse_tag_with_args(parser, bits, "fill")
    nodelist = parser.parse(parse_until=["endfill"])
    parser.delete_first_token()
    return FillNode(FilterExpression(slot_name, parser), context_args, context_kwargs, nodelist)


class ComponentNode(Node):
    def __init__(
        self,
        name_fexp: FilterExpression,
        context_args: List[FilterExpression],
        context_kwargs: Dict[str, FilterExpression],
        isolated_context: bool = False,
        fill_nodes: Tuple[FillNode, ...] = (),
        nodelist: Optional[NodeList] = None,
    ):
        self.name_fexp = name_fexp
        self.context_args = context_args or []
        self.context_kwargs = context_kwargs or {}
        self.isolated_context = isolated_context
        self.fill_nodes = fill_nodes
        self.nodelist = nodelist if nodelist is not None else NodeList()

    def __repr__(self):
        return "<ComponentNode: %s. Fills: %r. Contents: %r>" % (
            self.name_fexp,
            self.fill_nodes,
            self.nodelist,
        )

    def render(self, context: Context):
        resolved_component_name = self.name_fexp.resolve(context)
        component_cls: Type["Component"] = component_registry.get(resolved_component_name)

        # Resolve FilterExpressions and Variables that were passed as args to the
        # component, then construct the component with them
        resolved_context_args = [safe_resolve(arg, context) for arg in self.context_args]
        resolved_context_kwargs = {key: safe_resolve(kwarg, context) for key, kwarg in self.context_kwargs.items()}
        component: "Component" = component_cls(*resolved_context_args, **resolved_context_kwargs)

        # Fills are applied in template order, before the component renders.
        for fill_node in self.fill_nodes:
            fill_node.fill(component, context)

        content = partial(self.nodelist.render, context) if block_has_content(self.nodelist) else None

        if self.isolated_context:
            context = context.new()
        return component.render(context, content=content)


@register.tag(name="component")
def do_component(parser, token):
    """
    To give the component access to the template context:
        {% component "name" positional_arg keyword_arg=value ... %}{% endcomponent %}

    To render the component in an isolated context:
        {% component "name" positional_arg keyword_arg=value ... only %}{% endcomponent %}

    Positional and keyword arguments can be literals or template variables,
    and are passed to the component's constructor.
    The component name must be either the first positional argument or,
    if there are no positional arguments, passed as 'name'.

    Direct `{% fill %}` children set the component's slots, everything else
    in the body becomes the component's content.
    """

    bits = token.split_contents()
    bits, isolated_context = check_for_isolated_context_keyword(bits)
    component_name, context_args, context_kwargs = parse_tag_with_args(parser, bits, "component")
    body: NodeList = parser.parse(parse_until=["endcomponent"])
    parser.delete_first_token()

    fill_nodes = tuple(node for node in body if isinstance(node, FillNode))
    content_nodelist = NodeList(node for node in body if not isinstance(node, FillNode))

    return ComponentNode(
        FilterExpression(component_name, parser),
        context_args,
        context_kwargs,
        isolated_context=isolated_context,
        fill_nodes=fill_nodes,
        nodelist=content_nodelist,
    )


def block_has_content(nodelist) -> bool:
    for node in nodelist:
        if isinstance(node, TextNode) and node.s.isspace():
            pass
        elif isinstance(node, CommentNode):
            pass
        else:
            return True
    return False


def check_for_isolated_context_keyword(bits):
    """Return True and strip the last word if token ends with 'only' keyword."""

    if bits[-1] == "only":
        return bits[:-1], True
    return bits, False


def parse_tag_with_args(parser, bits, tag_name) -> Tuple[str, List[Any], Dict[str, Any]]:
    tag_args, tag_kwargs = parse_bits(
        parser=parser,
        bits=bits,
        params=["tag_name", "name"],
        takes_context=False,
        name=tag_name,
        varargs=True,
        varkw=[],
        defaults=None,
        kwonly=[],
        kwonly_defaults=None,
    )

    if tag_name != tag_args[0].token:
        raise RuntimeError(f"Internal error: Expected tag_name to be {tag_name}, but it was {tag_args[0].token}")
    if len(tag_args) > 1:
        # At least one position arg, so take the first as the name
        name = tag_args[1].token
        context_args = tag_args[2:]
        context_kwargs = tag_kwargs
    else:  # No positional args, so look for the name as keyword arg
        try:
            name = tag_kwargs.pop("name").token
            context_args = []
            context_kwargs = tag_kwargs
        except KeyError:
            raise TemplateSyntaxError(f"Call the '{tag_name}' tag with a name as the first parameter")

    return name, context_args, context_kwargs


def safe_resolve(context_item, context):
    """Resolve FilterExpressions and Variables in context if possible.  Return other items unchanged."""

    return context_item.resolve(context) if hasattr(context_item, "resolve") else context_item
