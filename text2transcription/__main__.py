"""Package entry point for ``python -m text2transcription``.

HOW: ``--serve`` starts the HTTP API with uvicorn; anything else goes to
the CLI's main() function.

RULES:
- This file must exist for ``python -m text2transcription`` to work
- ``--serve`` launches the FastAPI server
- Without ``--serve``, falls through to the CLI
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from text2transcription.server.app import run_api
        run_api()
    else:
        from text2transcription.cli import main
        main()
