from enum import Enum


class MenuItemTypeEnum(str, Enum):
    page = "page"
    post = "post"
    category = "category"
    service = "service"
    project = "project"
    custom_link = "custom-link"
    external_link = "external-link"


class MenuItemTargetEnum(str, Enum):
    self_ = "_self"
    blank = "_blank"


# Tipos que apuntan a una entidad de contenido mediante `reference` (slug)
ENTITY_ITEM_TYPES = frozenset({
    MenuItemTypeEnum.page,
    MenuItemTypeEnum.post,
    MenuItemTypeEnum.category,
    MenuItemTypeEnum.service,
    MenuItemTypeEnum.project,
})

# Tipos que llevan una URL literal en `url`
LINK_ITEM_TYPES = frozenset({
    MenuItemTypeEnum.custom_link,
    MenuItemTypeEnum.external_link,
})
