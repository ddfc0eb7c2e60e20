import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from math_exam.config import load_settings
from math_exam.models import ExamRequest, ExamResponse
from math_exam.services import ExamService, GenerationError

# Load environment variables
load_dotenv()

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A missing API key raises ConfigError here and aborts startup
    settings = load_settings()
    app.state.exam_service = ExamService(
        api_key=settings.groq_api_key,
        model=settings.groq_model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )
    logger.info(f"Exam service ready (model: {settings.groq_model})")
    yield


app = FastAPI(
    title="Math Exam Generator API",
    description="Create custom math quizzes with the power of AI",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_exam_service(request: Request) -> ExamService:
    return request.app.state.exam_service


@app.get("/")
async def root():
    return {
        "message": "Math Exam Generator API",
        "status": "running",
        "endpoints": {
            "generate_exam": "/api/exam/generate"
        }
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.post("/api/exam/generate", response_model=ExamResponse)
async def generate_exam(request: ExamRequest, service: ExamService = Depends(get_exam_service)):
    """
    Generate a math exam for a topic

    - **topic**: Math topic (e.g., "Fractions", "Calculus")
    - **num_questions**: Number of questions (1-20)
    """
    try:
        questions = await service.generate_exam(
            topic=request.topic,
            num_questions=request.num_questions
        )
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ExamResponse(topic=request.topic, questions=questions)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
