# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the Alaga Help platform.

This package contains pure business logic with no network access.
Collaborators such as the geocoder are passed in as callables, so every
function is testable without external dependencies.
"""
