import logging
import os
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional, List

from Calculus.derivative_ast import (
    DerivativeResult,
    compute_derivative_ast,
    differentiate_request,
)
from Calculus.errors import ExpressionError
from Calculus.limits import limits_from_env

# Random expression generator
from generate_expression import generate_random_expression

# -------------------------------------------------------------------
# Setup
# -------------------------------------------------------------------
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)

ENV_VAR_ALLOWED_ORIGINS = "CALCULUS_ALLOWED_ORIGINS"
DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:4000",
]


def allowed_origins() -> List[str]:
    configured = os.getenv(ENV_VAR_ALLOWED_ORIGINS)
    if not configured:
        return DEFAULT_ALLOWED_ORIGINS
    return [origin.strip() for origin in configured.split(",") if origin.strip()]


LIMITS = limits_from_env()

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------------------------------------------
# Symbol Normalization (√ → sqrt)
# -------------------------------------------------------------------
def normalize_expression(expr: str):
    if not expr:
        return expr
    expr = expr.replace("√", "sqrt")
    expr = expr.replace("²", "^2")
    return expr

# -------------------------------------------------------------------
# Render Health Endpoints
# -------------------------------------------------------------------
@app.get("/ping")
async def ping():
    logger.info("🔔 Uptime ping received")
    return {"status": "ok", "message": "Backend is alive"}

@app.get("/uptime")
async def uptime():
    logger.info("🟢 UptimeRobot pinged this server.")
    return {"status": "alive"}

# -------------------------------------------------------------------
# Pydantic Models
# -------------------------------------------------------------------
class ExpressionInput(BaseModel):
    expression: str
    variable: str = 'x'


class DerivativeRequestInput(BaseModel):
    request: str


class GenerationInput(BaseModel):
    num_terms: Optional[int] = 3
    max_depth: Optional[int] = 2
    variables: Optional[List[str]] = ['x']

# -------------------------------------------------------------------
# Derivative Engine
# -------------------------------------------------------------------
def to_response(result: DerivativeResult):
    return {
        "expression": result.expression,
        "variable": result.variable,
        "derivative": result.simplified,
        "extended": result.raw,
        "steps": result.steps,
        "unsupported": result.unsupported,
        "executionTimeMs": result.execution_time_ms,
        "peakMemoryBytes": result.peak_memory_bytes,
    }


def run_engine(compute, *args):
    try:
        return to_response(compute(*args))

    except ExpressionError as e:
        logger.debug(f"Rejected input: {e.message}")
        raise HTTPException(
            status_code=400,
            detail={
                "error": type(e).__name__,
                "message": e.message,
                "position": e.position,
                "context": e.format_with_context(),
            },
        )

    except Exception as e:
        logger.error("Unexpected derivative error", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Unexpected server error: {str(e)}"
        )

# -------------------------------------------------------------------
# API Endpoints
# -------------------------------------------------------------------
@app.get("/differentiate")
async def differentiate_get(expression: str, variable: str = 'x'):
    expression = normalize_expression(expression)
    logger.debug(f"Solve request (normalized): {expression}")
    return run_engine(compute_derivative_ast, expression, variable, LIMITS)


@app.post("/differentiate")
async def differentiate_post(input_data: ExpressionInput):
    expression = normalize_expression(input_data.expression)
    logger.debug(f"Solve request (normalized): {expression}")
    return run_engine(compute_derivative_ast, expression, input_data.variable, LIMITS)


@app.post("/derivative-request")
async def derivative_request(input_data: DerivativeRequestInput):
    line = normalize_expression(input_data.request)
    logger.debug(f"Leibniz request (normalized): {line}")
    return run_engine(differentiate_request, line, LIMITS)


@app.post("/generate")
async def generate_expression_endpoint(input_data: GenerationInput):
    try:
        expr_sym, expr_str, expr_latex = generate_random_expression(
            variables=input_data.variables,
            num_terms=input_data.num_terms,
            max_depth=input_data.max_depth
        )

        return {
            "expression_string": expr_str,
            "expression_latex": expr_latex
        }

    except Exception as e:
        logger.error("Generation error", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Generation failed: {str(e)}"
        )
