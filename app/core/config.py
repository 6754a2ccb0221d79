import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./placement_portal.db")
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# ✅ Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")

# ✅ CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

# ✅ Placement rules
REQUIRE_PROFILE_APPROVAL = os.getenv("REQUIRE_PROFILE_APPROVAL", "1") == "1"
CLOSE_EXPIRED_DRIVES_ON_STARTUP = os.getenv("CLOSE_EXPIRED_DRIVES_ON_STARTUP", "1") == "1"

# ✅ Email (SMTP)
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "1") == "1"
EMAIL_SENDER = os.getenv("EMAIL_SENDER", "placements@college.edu")
PORTAL_NAME = os.getenv("PORTAL_NAME", "College Placement Portal")
