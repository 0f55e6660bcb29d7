"""Entry point for running repograde as a module.

Usage:
    python -m repograde [command] [options]

Example:
    python -m repograde run octocat/hello-world --tool eslint
    python -m repograde check
"""

from repograde.cli import app

if __name__ == "__main__":
    app()
