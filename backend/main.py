# backend/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from database import init_db
from dotenv import load_dotenv

load_dotenv()

from config import settings
from services.errors import ShopError

# Import routerów
from routes.shop import router as shop_router
from routes.orders import router as orders_router
from routes.payments import router as payments_router
from routes.admin import router as admin_router
from routes.logs import router as logs_router
from routes.stripe import router as stripe_router
from routes.paypal import router as paypal_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Inicjalizacja
init_db()

app = FastAPI(title="Woolwitch Shop API", version="1.0.0")

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173"
]

if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Domain errors -> structured JSON with a stable code
@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# Rejestracja routerów
app.include_router(shop_router)
app.include_router(orders_router)
app.include_router(payments_router)
app.include_router(admin_router)
app.include_router(logs_router)
app.include_router(stripe_router)
app.include_router(paypal_router)

@app.get("/")
def read_root():
    return {"message": "Woolwitch Shop API działa!"}
