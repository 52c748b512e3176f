# SPDX-License-Identifier: Apache-2.0

"""
Dashboard navigation chrome: menus, icon lookup and breadcrumbs.
"""

from typing import List, Dict, Any, Optional
import re
import logging

logger = logging.getLogger(__name__)

APP_PREFIX = "/app"

BRAND = {
    "name": "Alaga Help",
    "tagline": "Prevenção de Catastrofes",
    "icon": "Command"
}

GUEST_USER = {
    "name": "Guest",
    "email": "guest@example.com",
    "avatar": "/default-avatar.png"
}

# Icon names as used by the client icon set, mapped to their asset slug
ICON_REGISTRY: Dict[str, str] = {
    "Command": "command",
    "LayoutDashboard": "layout-dashboard",
    "CloudRain": "cloud-rain",
    "Waves": "waves",
    "MapPin": "map-pin",
    "Map": "map",
    "History": "history",
    "Droplets": "droplets",
    "Building2": "building-2",
    "Construction": "construction",
    "LifeBuoy": "life-buoy",
    "Info": "info",
    "Send": "send",
}

SINGLE_MENU = {
    "title": "Painel",
    "menus": [
        {"title": "Dashboard", "url": "/app/dashboard", "icon": "LayoutDashboard"},
        {"title": "Notificar Alagamento", "url": "/app/flooding-notification", "icon": "CloudRain"},
    ]
}

FOLLOW_UP_MENU = {
    "title": "Acompanhamento",
    "menus": [
        {
            "title": "Ocorrências",
            "url": "/app/follow-up",
            "icon": "Waves",
            "items": [
                {"title": "Mapa de alagamentos", "url": "/app/follow-up/map"},
                {"title": "Histórico", "url": "/app/follow-up/history"},
            ]
        },
    ]
}

INFRASTRUCTURE_MENU = {
    "title": "Infraestrutura",
    "menus": [
        {
            "title": "Drenagem",
            "url": "/app/infrastructure",
            "icon": "Construction",
            "items": [
                {"title": "Bocas de lobo", "url": "/app/infrastructure/storm-drains"},
                {"title": "Pontos de risco", "url": "/app/infrastructure/risk-points"},
            ]
        },
    ]
}

ABOUT_MENU = {
    "title": "Sobre",
    "menus": [
        {"title": "Suporte", "url": "/app/support", "icon": "LifeBuoy"},
        {"title": "Feedback", "url": "/app/feedback", "icon": "Send"},
        {"title": "Sobre o projeto", "url": "/app/about", "icon": "Info"},
    ]
}


def resolve_icon(name: Optional[str]) -> Optional[str]:
    """Look up an icon by name; unknown names are logged and yield None."""
    slug = ICON_REGISTRY.get(name or "")
    if slug is None:
        logger.warning(f"Ícone {name} não encontrado ou inválido.")
    return slug


def build_menu_section(section: Dict[str, Any]) -> Dict[str, Any]:
    """
    Resolve the icons of a menu section.

    Items whose icon cannot be resolved are omitted from the section.
    """
    menus = []
    for item in section["menus"]:
        icon = resolve_icon(item.get("icon"))
        if icon is None:
            continue
        entry = {"title": item["title"], "url": item["url"], "icon": icon}
        if item.get("items"):
            entry["items"] = [dict(sub) for sub in item["items"]]
        menus.append(entry)
    return {"title": section["title"], "menus": menus}


def build_sidebar(user: Optional[Dict[str, Optional[str]]] = None) -> Dict[str, Any]:
    """Complete sidebar: brand, menu sections and the signed-in user block."""
    user = user or {}
    return {
        "header": {
            "name": BRAND["name"],
            "tagline": BRAND["tagline"],
            "icon": resolve_icon(BRAND["icon"])
        },
        "single": build_menu_section(SINGLE_MENU),
        "followUp": build_menu_section(FOLLOW_UP_MENU),
        "infrastructure": build_menu_section(INFRASTRUCTURE_MENU),
        "secondary": build_menu_section(ABOUT_MENU),
        "user": {key: user.get(key) or default for key, default in GUEST_USER.items()}
    }


def capitalize(segment: str) -> str:
    return segment[:1].upper() + segment[1:]


def build_breadcrumbs(pathname: str) -> List[Dict[str, Any]]:
    """
    Build the breadcrumb trail for a dashboard path.

    The leading ``/app`` is dropped, empty segments are ignored and the
    last crumb is the current page.
    """
    stripped = re.sub(r'^/app', '', pathname or '')
    segments = [segment for segment in stripped.split('/') if segment]

    crumbs = []
    for index, segment in enumerate(segments):
        crumbs.append({
            "label": capitalize(segment),
            "href": APP_PREFIX + "/" + "/".join(segments[:index + 1]),
            "current": index == len(segments) - 1
        })
    return crumbs
