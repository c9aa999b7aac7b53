import os

# Environment
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
SUPERADMIN_DATABASE = os.getenv("SUPERADMIN_DATABASE", "AmasQIS")

# Identity provider
CLERK_JWT_KEY = os.getenv("CLERK_JWT_KEY", "")
CLERK_SECRET_KEY = os.getenv("CLERK_SECRET_KEY", "")
CLERK_API_URL = os.getenv("CLERK_API_URL", "https://api.clerk.com/v1")
CLERK_AUTHORIZED_PARTIES = [
    p.strip().rstrip("/")
    for p in os.getenv("CLERK_AUTHORIZED_PARTIES", "http://localhost:3000").split(",")
    if p.strip()
]
CLERK_TIMEOUT = float(os.getenv("CLERK_TIMEOUT", "10"))

# CORS, shared by REST and Socket.IO
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Mail
SMTP_HOST = os.getenv("SMTP_HOST", "mailhog")
SMTP_PORT = int(os.getenv("SMTP_PORT", "1025"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASS = os.getenv("SMTP_PASS", "")
SMTP_FROM = os.getenv("SMTP_FROM", "noreply@amasqis.ai")
LOGIN_URL = os.getenv("LOGIN_URL", "http://localhost:3000/login")

SUPERADMIN_ROOM = "superadmin_room"
