"""FastAPI application entry point."""
import logging
import os

import config
from handlers import count
from platforms.slack import SlackHandler
from routes.application import create_app

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

slack = SlackHandler()
app = create_app(
    slack,
    verification_token=config.SLACK_VERIFICATION_TOKEN or None,
    connect_store=True
)
count.register(slack, lambda: app.state.store)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", config.PORT))
    uvicorn.run(app, host="0.0.0.0", port=port)
