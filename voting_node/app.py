"""
voting_node/app.py
------------------
Thin entrypoint for running the voting node via:

    uvicorn voting_node.app:app

All real route wiring lives in voting_node.voting_api.
"""

from .voting_api import create_app

app = create_app()


if __name__ == "__main__":
    # Convenience for: python -m voting_node.app
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
