"""
Intellecta Configuration
Everything is read from the environment with development defaults
"""

import os

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
VERSION = os.getenv("VERSION", "1.0.0")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# MongoDB
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "intellecta_db")

# Tokens
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "30"))
VERIFICATION_CODE_TTL_MINUTES = int(os.getenv("VERIFICATION_CODE_TTL_MINUTES", "15"))

# Email (verification + welcome mails)
SMTP_HOST = os.getenv("SMTP_HOST", "")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
FROM_EMAIL = os.getenv("FROM_EMAIL", "Intellecta <no-reply@intellecta.app>")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Razorpay
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "")
RAZORPAY_WEBHOOK_SECRET = os.getenv("RAZORPAY_WEBHOOK_SECRET", "")

# Premium plan (whole currency units, converted to paise for the gateway)
PREMIUM_PRICE = int(os.getenv("PREMIUM_PRICE", "3000"))
PREMIUM_CURRENCY = os.getenv("PREMIUM_CURRENCY", "INR")
PREMIUM_DURATION_MONTHS = int(os.getenv("PREMIUM_DURATION_MONTHS", "12"))
TRANSACTION_PREFIX = "INTELLECTA_PREMIUM_"

# Code judge used for daily challenges
JUDGE_API_URL = os.getenv("JUDGE_API_URL", "http://localhost:8000")
JUDGE_API_KEY = os.getenv("JUDGE_API_KEY", "")
JUDGE_TIMEOUT_SECONDS = 30
JUDGE_POLL_INTERVAL_SECONDS = 1
JUDGE_MAX_POLL_ATTEMPTS = 60

# Gamification
COURSE_COMPLETION_POINTS = 100
QUIZ_PASS_SCORE = 70

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
