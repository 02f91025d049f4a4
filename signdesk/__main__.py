import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "signdesk.main:app",
        host=os.getenv("SIGNDESK_HOST", "127.0.0.1"),
        port=int(os.getenv("SIGNDESK_PORT", "8000")),
        reload=os.getenv("SIGNDESK_RELOAD") == "1",
    )


if __name__ == "__main__":
    main()
