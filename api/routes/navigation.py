# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Dashboard navigation endpoints.
"""

from flask import request, jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag

from models.requests import BreadcrumbQuery
from domain.navigation import build_sidebar, build_breadcrumbs

navigation_tag = Tag(name="Navigation", description="Dashboard sidebar and breadcrumbs")
navigation_bp = APIBlueprint(
    'navigation',
    __name__,
    url_prefix='/api/navigation',
    abp_tags=[navigation_tag]
)


def _session_user():
    # Set by the authentication proxy in front of the API
    return {
        "name": request.headers.get('X-User-Name'),
        "email": request.headers.get('X-User-Email'),
        "avatar": request.headers.get('X-User-Avatar')
    }


@navigation_bp.get('/sidebar')
def get_sidebar():
    """Sidebar menus with resolved icons and the signed-in user."""
    response = current_app.hal_formatter.builder.build_resource_response(
        build_sidebar(_session_user()),
        "/api/navigation/sidebar"
    )
    return jsonify(response), 200


@navigation_bp.get('/breadcrumbs')
def get_breadcrumbs(query: BreadcrumbQuery):
    """Breadcrumb trail for a dashboard path."""
    response = current_app.hal_formatter.builder.build_resource_response(
        {"path": query.path, "breadcrumbs": build_breadcrumbs(query.path)},
        "/api/navigation/breadcrumbs"
    )
    return jsonify(response), 200
