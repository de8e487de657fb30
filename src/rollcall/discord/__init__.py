"""Discord bot integration for Rollcall.

The bot runs in-process with FastAPI, sharing the same event loop. Raw
reaction events and the /availability buttons feed the reconciler; slash
commands manage teams and events and render rosters.

Optional: if DISCORD_BOT_TOKEN is not set, the app runs without Discord.
"""
