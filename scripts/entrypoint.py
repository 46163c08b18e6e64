import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the event intake service; migrations run in the deploy pipeline."""
  port = os.getenv("PORT", "8080")
  logger.info("Starting coursegen on port %s (run alembic upgrade head in deploy pipeline)...", port)
  # Replace the current process so uvicorn receives SIGTERM and drains in-flight runs.
  os.execvp("uvicorn", ["uvicorn", "coursegen.main:app", "--host", "0.0.0.0", "--port", port, "--no-server-header"])


if __name__ == "__main__":
  main()
