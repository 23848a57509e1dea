#!/usr/bin/env python3
"""
fluxstyle - точка входу консольної команди

    fluxstyle face.jpg --prompt "Make hair curly"
    fluxstyle --serve
"""

import logging
import os
import sys

# Модулі backend імпортуються як top-level (config, main, wizard, ...)
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def main(argv=None):
    """Запуск майстра; код виходу 0 або 1"""
    # Кольорові рядки статусу замість логів httpx
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    from cli_app import FluxStyleCLI

    sys.exit(FluxStyleCLI().run(argv))


if __name__ == "__main__":
    main()
