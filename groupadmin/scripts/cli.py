"""
A simple CLI for setting up the database and running the server.
"""

import sys

import uvicorn

USAGE = "Supported commands are: groupadmin run [dev|prod], groupadmin setup"


def main():
    try:
        command = sys.argv[1]
    except IndexError:
        print(USAGE)
        exit(1)

    if command == "setup":
        from groupadmin.api.setup import initial_setup
        from groupadmin.config.settings import Settings

        initial_setup(settings=Settings())
        print("Database tables and initial roles created")
        return

    if command == "run":
        dev = len(sys.argv) > 2 and sys.argv[2] == "dev"
        uvicorn.run("groupadmin.api.app:app", host="0.0.0.0", reload=dev)
        return

    print(USAGE)
    exit(1)
