"""
Address Normalizer - bulk cleaning of free-text postal addresses
Run with: uvicorn main:app --reload --port 8000

Upload a CSV / Excel / JSON file (or post a list of addresses), get back
canonical addresses, per-record status, an error report and statistics.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
load_dotenv()  # Must be before importing config

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from addrclean.config import Config
from addrclean.address_dictionary import DictionaryStore
from addrclean.address_normalizer import AddressNormalizer
from addrclean.address_validator import AddressValidator
from addrclean.batch_processor import BatchProcessor
from addrclean.address_router import router as address_router, configure_router
from addrclean.upload.document_parser import DocumentParserService

cfg = Config()  # Fresh instance after dotenv loaded

logging.basicConfig(
    level=cfg.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Globals
_store: DictionaryStore = None
_processor: BatchProcessor = None


def build_processor(config: Config) -> BatchProcessor:
    """Wire dictionary store, normalizer and validator from configuration."""
    if config.has_custom_dictionary():
        store = DictionaryStore.from_json_file(config.dictionary_path)
    else:
        store = DictionaryStore.default()

    if config.fuzzy_matching_enabled:
        normalizer = AddressNormalizer.with_fuzzy_matching(store, threshold=config.fuzzy_threshold)
    else:
        normalizer = AddressNormalizer(store)

    validator = AddressValidator(
        street_markers=store.street_markers,
        min_length=config.min_address_length,
    )
    return BatchProcessor(normalizer, validator)


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _store, _processor

    _processor = build_processor(cfg)
    _store = _processor.normalizer.store
    configure_router(
        _processor,
        DocumentParserService(),
        concurrency=cfg.batch_concurrency,
        max_batch_size=cfg.max_batch_size,
        address_column=cfg.address_column,
    )
    logger.info(
        f"Address normalizer ready: {len(_store.cities)} city entries, "
        f"{len(_store.street_types)} street type entries, "
        f"fuzzy matching {'on' if cfg.fuzzy_matching_enabled else 'off'}"
    )

    yield


app = FastAPI(title="Address Normalizer", version="1.0.0", lifespan=lifespan)
app.include_router(address_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Sanitized global exception handler - never exposes internal details."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred. Please try again later."
            }
        },
        headers={"Access-Control-Allow-Origin": "*"}
    )


@app.get("/api/health")
async def health():
    """Health check"""
    return {
        "status": "healthy" if _processor else "starting",
        "cities": len(_store.cities) if _store else 0,
        "street_types": len(_store.street_types) if _store else 0,
        "fuzzy_matching": cfg.fuzzy_matching_enabled,
        "min_address_length": cfg.min_address_length,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
