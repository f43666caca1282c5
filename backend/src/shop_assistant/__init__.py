"""Shop assistant request router: Telegram, admin panel, GitHub-hosted prompts and Gemini."""
