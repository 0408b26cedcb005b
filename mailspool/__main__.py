"""Entry point: ``python -m mailspool``.

Configuration comes from ``MAILSPOOL_*`` environment variables.
"""

from __future__ import annotations

import asyncio

from .config import MailSpoolConfig
from .service import MailSpoolService


def main() -> None:
    config = MailSpoolConfig()
    service = MailSpoolService(config)
    asyncio.run(service.run())


if __name__ == "__main__":
    main()
