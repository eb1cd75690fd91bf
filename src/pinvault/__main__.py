# Main Entry Point
#
# By default runs the vault API server. `--generate-password` prints a
# random password and exits without starting anything.

import sys
import argparse

from . import __version__
from .core import get_audit_logger, EventType, EventSeverity


def main(argv=None):
    """
    Main entry point for PinVault.
    """
    parser = argparse.ArgumentParser(
        prog="pinvault",
        description="PinVault - password vault API server",
    )

    parser.add_argument(
        "--host",
        default=None,
        help="API host (default: PINVAULT_HOST or 127.0.0.1)"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="API port (default: PINVAULT_PORT or 3000)"
    )

    parser.add_argument(
        "--generate-password",
        nargs="?",
        const=16,
        type=int,
        metavar="LENGTH",
        help="Print a random password (default length 16) and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"PinVault v{__version__}"
    )

    args = parser.parse_args(argv)

    if args.generate_password is not None:
        from .vault.encryption import SecretCodec

        if args.generate_password < 1:
            parser.error("LENGTH must be at least 1")
        print(SecretCodec.generate_password(args.generate_password))
        return 0

    from .api.main import start_api_server

    try:
        start_api_server(host=args.host, port=args.port)
    except KeyboardInterrupt:
        print("\n\nShutting down...")
    except Exception as e:
        print(f"\n\nError: {str(e)}")
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.CRITICAL,
            message=f"PinVault API crashed: {type(e).__name__}"
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
