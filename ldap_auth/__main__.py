"""Run the service: ``python -m ldap_auth`` or the ``ldap-auth`` script."""

from __future__ import annotations

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "ldap_auth.main:create_app",
        factory=True,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
