import logging
import json
import time
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from typing import Optional, List

from Engine.analysis import newtons_method
from Engine.differentiation import derive, differentiate
from Engine.display import display
from Engine.errors import MathError
from Engine.expression import Expression, as_pair, format_number, literal
from Engine.parsing import parse_tree
from Engine.simplification import simplify

# Random expression generator
from generate_expression import generate_random_expression

# -------------------------------------------------------------------
# Setup
# -------------------------------------------------------------------
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:4000",
    "https://thesis-calculator-frontend.vercel.app",
]

GENERATE_TERMS = 3
GENERATE_DEPTH = 2

STARTED_AT = time.monotonic()

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_origin_regex=r"https://.*\.vercel\.app",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------------------------------------------
# Symbol Normalization (π → pi, √ → sqrt)
# -------------------------------------------------------------------
SYMBOLS = {
    "π": "pi",
    "√": "sqrt",
    "×": "*",
    "÷": "/",
    "−": "-",
    "∞": "inf",
}


def normalize_expression(expr: str):
    if not expr:
        return expr
    for symbol, replacement in SYMBOLS.items():
        expr = expr.replace(symbol, replacement)
    return expr


def math_error(error: MathError):
    return HTTPException(status_code=400, detail={"type": error.kind, "message": error.message})


def serialize(result):
    """Canonical string for a tree or a complex pair; JSON has no inf or nan."""
    if isinstance(result, Expression):
        return str(result)
    return str(literal(result))


def event(payload):
    return f"data: {json.dumps(payload)}\n\n"

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
    return {"status": "alive", "seconds": round(time.monotonic() - STARTED_AT, 3)}

# -------------------------------------------------------------------
# Pydantic Models
# -------------------------------------------------------------------
class ExpressionInput(BaseModel):
    expression: str


class EvaluationInput(BaseModel):
    expression: str
    variable: Optional[str] = None
    value: Optional[List[float]] = Field(default=None, min_length=2, max_length=2)
    degree_mode: bool = False
    complex_mode: bool = True
    precision: int = Field(default=12, ge=0, le=15)


class DerivativeInput(BaseModel):
    expression: str
    variable: Optional[str] = 'x'
    implicit: bool = False
    factor: bool = False


class SimplifyInput(BaseModel):
    expression: str
    factor: bool = False


class RootInput(BaseModel):
    expression: str
    start: float = 1.0
    variable: str = 'x'


class GenerationInput(BaseModel):
    num_terms: Optional[int] = GENERATE_TERMS
    max_depth: Optional[int] = GENERATE_DEPTH
    variables: Optional[List[str]] = ['x']

# -------------------------------------------------------------------
# Calculator Endpoints
# -------------------------------------------------------------------
def parse_request(expression: str):
    expression = normalize_expression(expression)
    logger.debug(f"Request expression (normalized): {expression}")
    return parse_tree(expression)


@app.post("/parse")
async def parse_endpoint(input_data: ExpressionInput):
    try:
        tree = parse_request(input_data.expression)
    except MathError as e:
        raise math_error(e)
    return {"canonical": str(tree), "tex": display(tree)}


@app.post("/evaluate")
async def evaluate_endpoint(input_data: EvaluationInput):
    try:
        tree = parse_request(input_data.expression)
        bindings = {}
        if input_data.variable:
            bindings[input_data.variable] = as_pair(input_data.value) if input_data.value else None
        result = tree.evaluate(bindings, input_data.degree_mode, input_data.complex_mode)
    except MathError as e:
        raise math_error(e)
    except Exception as e:
        logger.error("Evaluation error", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Evaluation failed: {str(e)}")
    return {
        "result": serialize(result),
        "tex": display(result, input_data.precision),
        "is_number": not isinstance(result, Expression),
    }


@app.post("/differentiate")
async def differentiate_endpoint(input_data: DerivativeInput):
    try:
        tree = parse_request(input_data.expression)
        if input_data.variable:
            derivative = derive(tree, input_data.variable, input_data.implicit)
        else:
            derivative = differentiate(tree)
        derivative = simplify(derivative, input_data.factor)
    except MathError as e:
        raise math_error(e)
    except Exception as e:
        logger.error("Differentiation error", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Differentiation failed: {str(e)}")
    return {"derivative": str(derivative), "tex": display(derivative)}


@app.post("/simplify")
async def simplify_endpoint(input_data: SimplifyInput):
    try:
        simplified = simplify(parse_request(input_data.expression), input_data.factor)
    except MathError as e:
        raise math_error(e)
    except Exception as e:
        logger.error("Simplification error", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Simplification failed: {str(e)}")
    return {"simplified": str(simplified), "tex": display(simplified)}


@app.post("/roots")
async def roots_endpoint(input_data: RootInput):
    try:
        tree = parse_request(input_data.expression)
    except MathError as e:
        raise math_error(e)
    root = newtons_method(tree, input_data.start, input_data.variable)
    return {"root": format_number(root)}

# -------------------------------------------------------------------
# Streaming Solver
# -------------------------------------------------------------------
async def solve_generator(expression: str, variable: str):
    try:
        try:
            tree = parse_tree(expression)
        except MathError as e:
            yield event({'type': 'error', 'stage': 'parse', 'kind': e.kind, 'detail': e.message})
            return
        yield event({'type': 'parse', 'canonical': str(tree), 'tex': display(tree)})

        try:
            result = tree.evaluate()
            yield event({'type': 'evaluate', 'result': serialize(result), 'tex': display(result)})
        except MathError as e:
            yield event({'type': 'error', 'stage': 'evaluate', 'kind': e.kind, 'detail': e.message})

        try:
            derivative = simplify(derive(tree, variable))
            yield event({'type': 'derivative', 'result': str(derivative), 'tex': display(derivative)})
        except MathError as e:
            yield event({'type': 'error', 'stage': 'derivative', 'kind': e.kind, 'detail': e.message})

        yield event({'type': 'complete'})

    except Exception as e:
        logger.error("Unexpected solver error", exc_info=True)
        yield event({'type': 'error', 'detail': f"Unexpected server error: {str(e)}"})


@app.get("/solve_stream")
async def solve_stream(expression: str, variable: str = 'x'):

    expression = normalize_expression(expression)

    logger.debug(f"Solve request (normalized): {expression}")
    return StreamingResponse(
        solve_generator(expression, variable),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )


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
