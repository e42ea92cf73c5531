import os
import sys
import traceback
from pathlib import Path

import uvicorn

# Load .env before reading PORT/HOST/ENVIRONMENT
from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def main() -> None:
    """
    Entry point for around.
    Serves the HTTP gateway; stores are bootstrapped during app startup and
    an unreachable store aborts the process.
    """
    port = int(os.getenv("PORT", "8080"))
    host = os.getenv("HOST", "0.0.0.0")
    environment = os.getenv("ENVIRONMENT", "development").lower()
    workers = int(os.getenv("WORKERS", "1")) if environment == "production" else 1

    print(f"Starting around ({environment}) on http://{host}:{port}")

    try:
        uvicorn.run(
            "gateway.main:app",
            host=host,
            port=port,
            workers=workers,
            reload=environment == "development",
            log_level="info" if environment == "production" else "debug",
        )
    except KeyboardInterrupt:
        print("\n\nShutdown complete.")
        sys.exit(0)
    except Exception as e:
        print(f"\nFatal error: {e}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
