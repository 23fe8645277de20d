"""Label templates and the fill engine."""

from pinv.labels.templates import (
    TemplateDoc,
    fill,
    fill_key_sheet,
    list_builtin,
    load_template,
)

__all__ = ["TemplateDoc", "fill", "fill_key_sheet", "list_builtin", "load_template"]
