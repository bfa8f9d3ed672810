"""
MITC Store - API Server Entry Point
===================================

Run this to start the back-office API:
    python main.py

Then open http://127.0.0.1:8000/docs in your browser.

To run the warranty campaign (reminders + review requests):
    python run_campaign.py
"""

import logging

import uvicorn

from mitc_store.infrastructure.config import get_settings


def main():
    """Start the web server."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    for issue in get_settings().validate():
        logging.getLogger(__name__).warning(issue)

    print("\n" + "=" * 50)
    print("   MITC Store - Back Office API")
    print("=" * 50)
    print("\n   Starting server at http://127.0.0.1:8000")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "mitc_store.web.app:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info"
    )


if __name__ == "__main__":
    main()
