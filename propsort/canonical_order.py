# /propsort/canonical_order.py

# Built-in precedence for common JSX props, already normalized with
# split_identifier. Entries ending in '*' match every prop with that prefix.
CANONICAL_ORDER = (
    # identity
    "key",
    "ref",
    "id",
    "name",
    # element semantics
    "as",
    "type",
    "role",
    "html for",
    "href",
    "src",
    "alt",
    "title",
    # layout & styling
    "variant",
    "size",
    "color",
    "class name",
    "style",
    "sx",
    "width",
    "height",
    # values
    "label",
    "placeholder",
    "value",
    "default value",
    "checked",
    "default checked",
    "min",
    "max",
    "step",
    "pattern",
    # state
    "required",
    "read only",
    "disabled",
    "hidden",
    "auto focus",
    "tab index",
    # handlers
    "on *",
    # content
    "children",
    # attributes for tooling & accessibility
    "data *",
    "aria *",
    "test *",
)
