import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from intellecta.core.config import MONGO_URL, MONGO_DB_NAME, LOG_LEVEL, CORS_ORIGINS, VERSION
from intellecta.core.indexes import create_indexes
from intellecta.core.responses import error_body
from intellecta.users.auth_router import router as auth_router
from intellecta.users.user_router import router as user_router
from intellecta.courses.course_router import router as course_router
from intellecta.enrollments.enrollment_router import router as enrollment_router
from intellecta.topics.topic_router import router as topic_router
from intellecta.lessons.lesson_router import router as lesson_router
from intellecta.payments.payment_router import router as payment_router
from intellecta.gamification.challenge_router import router as challenge_router
from intellecta.gamification.leaderboard_router import router as leaderboard_router
from intellecta.gamification.dashboard_router import router as dashboard_router
from intellecta.community.qa_router import router as qa_router
from intellecta.community.project_router import router as project_router
from intellecta.community.message_router import router as message_router
from intellecta.system.health_router import router as health_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("intellecta")

app = FastAPI(title="Intellecta API", version=VERSION)

# MongoDB Configuration
client = AsyncIOMotorClient(MONGO_URL)
db = client[MONGO_DB_NAME]


@app.on_event("startup")
async def startup_event():
    await create_indexes(db)
    logger.info("Intellecta API started")


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== ERROR ENVELOPE ====================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        message = detail.pop("message", "Request failed")
        body = error_body(message, **detail)
    else:
        body = error_body(str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_body("Validation failed", errors))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))

# ==================== ROUTER REGISTRATION ====================
app.include_router(health_router)
app.include_router(auth_router, prefix="/auth")
app.include_router(user_router, prefix="/users")
app.include_router(enrollment_router, prefix="/courses")
app.include_router(course_router, prefix="/courses")
app.include_router(topic_router, prefix="/topics")
app.include_router(lesson_router, prefix="/lessons")
app.include_router(payment_router, prefix="/payments")
app.include_router(challenge_router, prefix="/challenges")
app.include_router(leaderboard_router, prefix="/leaderboard")
app.include_router(dashboard_router, prefix="/dashboard")
app.include_router(qa_router, prefix="/qa")
app.include_router(project_router, prefix="/projects")
app.include_router(message_router, prefix="/messages")
# ============================================================
