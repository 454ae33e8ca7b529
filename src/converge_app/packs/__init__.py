"""Domain packs: the catalogue and the growth-strategy bundle."""

from converge_app.packs.catalog import (
    PackInfo,
    available_packs,
    default_packs,
    find_template,
    pack_info,
    register_pack_agents,
)

__all__ = [
    "PackInfo",
    "available_packs",
    "default_packs",
    "find_template",
    "pack_info",
    "register_pack_agents",
]
