"""
Discord bot — production entry point.

Reads config from environment variables (.env file or system env).
See .env.example for the full list.
"""

from ultron.cli import main

if __name__ == "__main__":
    main()
