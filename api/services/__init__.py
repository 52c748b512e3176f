# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - External integrations and side effects.

Modules are imported directly (``from services.cep import CepService``);
the package itself stays empty so the error handler can import the HAL
formatter without pulling in the HTTP clients that depend on it.
"""
