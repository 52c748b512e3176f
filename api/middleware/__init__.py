# SPDX-License-Identifier: Apache-2.0

"""
Middleware package for request processing.

This package contains the error handling and CORS components that wrap
every request to the Alaga Help API.
"""
