# backend/main.py
import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv

# Export .env values to the process environment before settings are read
load_dotenv()

from config import settings
from database import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Router imports
from routes.auth import router as auth_router
from routes.shop import router as shop_router
from routes.cart import router as cart_router
from routes.orders import router as orders_router
from routes.admin import router as admin_router
from routes.stats import router as stats_router
from routes.logs import router as logs_router

# Initialization
init_db()

app = FastAPI(title="Storefront API", version="1.0.0")

# Uploaded product images
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173"
]
if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration
app.include_router(auth_router)
app.include_router(shop_router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(stats_router)
app.include_router(admin_router)
app.include_router(logs_router)

@app.get("/")
def read_root():
    return {"message": "Storefront API is running"}
