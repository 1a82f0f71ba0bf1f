from app.templates.registry import (
    TEMPLATE_REGISTRY,
    TemplateConfig,
    get_template_config,
    get_template_id_from_name,
    list_templates,
)

__all__ = [
    "TEMPLATE_REGISTRY",
    "TemplateConfig",
    "get_template_config",
    "get_template_id_from_name",
    "list_templates",
]
