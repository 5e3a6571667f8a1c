"""Users app package.

This module defines the platform user model with its roles (guest,
partner, admin, manager, executive) and the partner profile that
property owners complete before listing lofts. Use
``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout
the project.
"""
