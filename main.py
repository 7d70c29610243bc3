import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import content
import products
from config import get_settings
from content import SingletonKind
from database import Database, get_database
from errors import ContentError, StoreUnavailableError, validation_details
from revalidate import PageCache, get_page_cache
from schemas import AboutUs, HomePage, ProductCreate, ProductUpdate, SharedSettings, SiteContent

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = Database.from_settings(settings)
    try:
        database.connect()
    except StoreUnavailableError:
        # Routes retry the connection on their next request
        logger.warning("MongoDB not reachable at startup")
    app.state.database = database
    app.state.page_cache = PageCache.from_settings(settings)
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    yield
    database.close()


app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------
# Error envelope
# -----------------------------
@app.exception_handler(ContentError)
async def content_error_handler(request: Request, exc: ContentError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Validation failed",
            "details": validation_details(exc.errors(), skip_prefix=("body", "path", "query")),
        },
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


def ok(data):
    return {"success": True, "data": data}


# -----------------------------
# Root & health
# -----------------------------
@app.get("/")
def read_root():
    return {"message": f"{settings.APP_NAME} running"}


@app.get("/test")
def test_database(db: Database = Depends(get_database)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": db.name,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        response["collections"] = db.collection_names()
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except StoreUnavailableError as e:
        response["database"] = f"❌ Error: {str(e.__cause__ or e)[:80]}"
    return response


# -----------------------------
# Schema exposure for the dashboard forms
# -----------------------------
@app.get("/schema")
def get_schema():
    return {
        "shared": SharedSettings.model_json_schema(by_alias=True),
        "homepage": HomePage.model_json_schema(by_alias=True),
        "aboutus": AboutUs.model_json_schema(by_alias=True),
        "sitecontent": SiteContent.model_json_schema(by_alias=True),
        "product": ProductCreate.model_json_schema(by_alias=True),
    }


# -----------------------------
# Singleton documents
# -----------------------------
@app.get("/api/v1/shared")
def get_shared(db: Database = Depends(get_database)):
    return ok(content.get_singleton(db, SingletonKind.SHARED))


@app.post("/api/v1/shared")
def update_shared(payload: SharedSettings, db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    return ok(content.upsert_singleton(db, cache, SingletonKind.SHARED, payload))


@app.get("/api/v1/homepage")
def get_homepage(db: Database = Depends(get_database)):
    return ok(content.get_singleton(db, SingletonKind.HOMEPAGE))


@app.post("/api/v1/homepage")
def update_homepage(payload: HomePage, db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    return ok(content.upsert_singleton(db, cache, SingletonKind.HOMEPAGE, payload))


@app.delete("/api/v1/homepage")
def reset_homepage(db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    existed = content.reset_singleton(db, cache, SingletonKind.HOMEPAGE)
    return {"success": True, "message": "Homepage content reset" if existed else "Homepage content was already empty"}


@app.get("/api/v1/aboutus")
def get_aboutus(db: Database = Depends(get_database)):
    return ok(content.get_singleton(db, SingletonKind.ABOUTUS))


@app.post("/api/v1/aboutus")
def update_aboutus(payload: AboutUs, db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    return ok(content.upsert_singleton(db, cache, SingletonKind.ABOUTUS, payload))


@app.get("/api/v1/sitecontent")
def get_sitecontent(db: Database = Depends(get_database)):
    return ok(content.get_singleton(db, SingletonKind.SITECONTENT))


@app.post("/api/v1/sitecontent")
def update_sitecontent(payload: SiteContent, db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    return ok(content.upsert_singleton(db, cache, SingletonKind.SITECONTENT, payload))


# -----------------------------
# Products CRUD
# -----------------------------
@app.get("/api/v1/products")
def list_products(db: Database = Depends(get_database)):
    return ok(products.list_products(db))


@app.post("/api/v1/products", status_code=201)
def create_product(payload: ProductCreate, db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    return ok(products.create_product(db, cache, payload))


@app.get("/api/v1/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_database)):
    return ok(products.get_product(db, product_id))


@app.put("/api/v1/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    return ok(products.update_product(db, cache, product_id, payload))


@app.delete("/api/v1/products/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    products.delete_product(db, cache, product_id)
    return {"success": True, "message": "Product deleted successfully"}


# -----------------------------
# Dashboard summary
# -----------------------------
@app.get("/api/v1/dashboard")
def dashboard_summary(db: Database = Depends(get_database)):
    return ok({
        "products": products.count_products(db),
        "pages": content.singleton_status(db),
    })


# -----------------------------
# Public pages (cached per logical path)
# -----------------------------
@app.get("/api/pages/home")
def home_page(db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    return ok(cache.get_or_render("/", lambda: {
        "settings": content.get_singleton(db, SingletonKind.SHARED),
        "homepage": content.get_singleton(db, SingletonKind.HOMEPAGE),
    }))


@app.get("/api/pages/about-us")
def about_us_page(db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    return ok(cache.get_or_render("/about-us", lambda: {
        "settings": content.get_singleton(db, SingletonKind.SHARED),
        "aboutus": content.get_singleton(db, SingletonKind.ABOUTUS),
    }))


@app.get("/api/pages/products")
def products_page(db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    return ok(cache.get_or_render("/products", lambda: products.list_products(db)))


@app.get("/api/pages/products/{product_id}")
def product_page(product_id: str, db: Database = Depends(get_database), cache: PageCache = Depends(get_page_cache)):
    product_id = products.canonical_id(product_id)
    return ok(cache.get_or_render(f"/products/{product_id}", lambda: products.get_product(db, product_id)))


@app.get("/api/get-data")
def get_site_data(db: Database = Depends(get_database)):
    stored = content.get_singleton(db, SingletonKind.SITECONTENT)
    return ok(stored.get("content"))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
