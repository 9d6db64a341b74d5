#!/usr/bin/env python
"""
Management entry point for the Household Budget backend.

Defaults to the development settings; deployments export
DJANGO_SETTINGS_MODULE=core.settings.production.
"""

import os
import sys


def main():
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings.dev")

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Install the project with "
            "`pip install -e .` inside an activated virtual environment."
        ) from exc

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
