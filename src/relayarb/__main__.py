"""
Entry point for the relay arbitrage bot.

Usage:
    python -m relayarb
    relayarb  # if installed via pip
"""

import sys


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from pydantic import ValidationError

    from relayarb.dashboard.server import main as serve

    try:
        serve()
    except ValidationError as e:
        print(f"Configuration error: {e}")
        print("\nCheck your .env file, for example:")
        print("  NETWORK=devnet")
        print("  GATEWAY_API_KEY=your_gateway_key")
        print("  WALLET_PRIVATE_KEY=your_base58_private_key")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
