import os

# Database connection string. Defaults to a local SQLite file for development.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sales.db")

# Key used to verify caller tokens.
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
ALGORITHM = "HS256"

# SMTP settings for receipt emails. Mail is skipped when SMTP_HOST is unset.
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_STARTTLS = os.getenv("SMTP_STARTTLS", "1").strip() in {"1", "true", "True", "yes"}
MAIL_FROM = os.getenv("MAIL_FROM", "no-reply@sales.local")

# Broker host for domain events. Events are disabled when unset.
RABBITMQ_HOST = os.getenv("RABBITMQ_HOST")
EVENTS_EXCHANGE = "events"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
