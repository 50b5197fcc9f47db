#aqui se el __init__.py para importar las clases y funciones necesarias
from .base import Base
from .enums import MenuItemTypeEnum, MenuItemTargetEnum
from .menu import Menu, MenuItem
