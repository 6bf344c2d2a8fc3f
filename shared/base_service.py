"""
Base service class for Criteria service applications.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Dict, Optional
import time
import os

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.errors import CriteriaException, NotFoundError


class BaseService:
    """Base service class with common functionality."""
    
    def __init__(self, service_name: str, port: int, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.port = port
        self.config = config or get_config(service_name, port)
        self.logger = get_logger(service_name)
        self._start_time = time.time()
        
        # Configure logging
        configure_logging(service_name, self.config.log_level)
        
        # Create FastAPI app
        self.app = self._create_app()
        
        # Set up middleware
        self._setup_middleware()
        
        # Set up routes
        self._setup_routes()
    
    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        
        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await self.start()
            yield
            await self.stop()
        
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"{self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=lifespan,
        )
    
    def _setup_middleware(self):
        """Set up middleware."""
        
        # CORS middleware
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if self.config.env == "local" else [],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        
        # Request timing middleware
        @self.app.middleware("http")
        async def add_request_timing(request: Request, call_next):
            start_time = time.time()
            set_request_id(request.headers.get("x-request-id"))
            
            try:
                response = await call_next(request)
                
                duration = time.time() - start_time
                self.logger.info(
                    "HTTP request",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration * 1000, 2)
                )
                
                return response
            finally:
                clear_context()
    
    def _setup_routes(self):
        """Set up common routes."""
        
        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            try:
                dependencies = await self._check_dependencies()
                
                return {
                    "service": self.service_name,
                    "status": "ok",
                    "uptime_seconds": self._get_uptime(),
                    "dependencies": dependencies,
                    "version": "1.0.0",
                    "commit": os.getenv("GIT_COMMIT", "unknown")
                }
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                return JSONResponse(
                    status_code=503,
                    content={
                        "service": self.service_name,
                        "status": "error",
                        "error": str(e)
                    }
                )
        
        # Error handlers
        @self.app.exception_handler(NotFoundError)
        async def not_found_exception_handler(request: Request, exc: NotFoundError):
            """Handle NotFoundError."""
            self.logger.info("Record not found", code=exc.code, message=exc.message)
            return JSONResponse(
                status_code=404,
                content=exc.to_response().model_dump()
            )
        
        @self.app.exception_handler(CriteriaException)
        async def criteria_exception_handler(request: Request, exc: CriteriaException):
            """Handle CriteriaException."""
            self.logger.error(
                "Criteria service error",
                code=exc.code,
                message=exc.message,
                details=exc.details
            )
            return JSONResponse(
                status_code=400,
                content=exc.to_response().model_dump()
            )
        
        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "code": "INTERNAL_ERROR",
                    "message": "Internal server error",
                    "details": {}
                }
            )
    
    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}
    
    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time
    
    async def start(self):
        """Start service components. Override in subclasses."""
    
    async def stop(self):
        """Stop service components. Override in subclasses."""
    
    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
