"""
API tests for the extraction endpoints.
"""
from unittest.mock import patch

import requests
from fastapi.testclient import TestClient

from api.main import app
from core.config_validator import ConfigValidator
from core.pipeline import ExtractionPipeline

client = TestClient(app)

HEURISTIC_PIPELINE = ExtractionPipeline(model_enabled=False)


class TestHealth:
    """Test service endpoints."""

    def test_root(self):
        """Test the root endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["message"] == "Task Extraction API"

    def test_health(self):
        """Test the health endpoint."""
        assert client.get("/health").json() == {"status": "healthy"}


@patch("api.routes.extraction.pipeline", HEURISTIC_PIPELINE)
class TestExtractTasks:
    """Test POST /api/v1/extraction/tasks."""

    def test_extract_midterm(self):
        """Test the midterm line end to end over HTTP."""
        response = client.post("/api/v1/extraction/tasks", json={
            "sources": [{"kind": "syllabus", "text": "Midterm Exam due Oct 25 at 11:59pm"}],
            "courses": [{"id": "c1", "code": "CS101", "name": "Intro to CS"}],
            "reference_date": "2026-10-12T09:00:00",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        task = data["tasks"][0]
        assert task["title"] == "Midterm Exam"
        assert task["type"] == "exam"
        assert task["courseId"] == "c1"
        assert task["dueDate"] == "2026-10-25T23:59:00"
        assert task["isHardDeadline"] is True
        assert task["complexity"] == 5
        assert task["estimatedHours"] == 8.0
        assert data["summary"]["totalTasks"] == 1

    def test_existing_tasks_by_alias(self):
        """Test camelCase existing tasks suppress duplicates."""
        response = client.post("/api/v1/extraction/tasks", json={
            "sources": [{"kind": "syllabus", "text": "Essay due 10/25"}],
            "courses": [{"id": "c1", "code": "CS101", "name": "Intro to CS"}],
            "existing_tasks": [{"title": "Essay", "dueDate": "2026-10-25T23:59:00", "courseId": "c1"}],
            "reference_date": "2026-10-12T09:00:00",
        })

        assert response.status_code == 200
        assert [t["origin"] for t in response.json()["tasks"]] == ["existing"]

    def test_empty_sources(self):
        """Test nothing to extract."""
        response = client.post("/api/v1/extraction/tasks", json={"sources": [{"kind": "syllabus", "text": ""}]})

        assert response.status_code == 200
        assert response.json()["status"] == "nothing_to_extract"

    def test_unknown_kind_rejected(self):
        """Test invalid input is a 422."""
        response = client.post("/api/v1/extraction/tasks", json={
            "sources": [{"kind": "email", "text": "Essay due 10/25"}],
        })

        assert response.status_code == 422
        assert "email" in response.json()["detail"]

    def test_missing_sources_rejected(self):
        """Test request validation."""
        response = client.post("/api/v1/extraction/tasks", json={})

        assert response.status_code == 422


class TestChunkEndpoint:
    """Test POST /api/v1/extraction/chunks."""

    def test_chunk_sections(self):
        """Test section chunks and metadata."""
        response = client.post("/api/v1/extraction/chunks", json={
            "text": "Course: Intro to Psychology\nInstructor: Dr. Smith\nAssignments\nAssignment 1 due 10/20\n",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["assignments"] == ["Assignments\nAssignment 1 due 10/20\n"]
        assert data["metadata"]["courseTitle"] == "Intro to Psychology"
        assert data["metadata"]["instructor"] == "Dr. Smith"
        assert data["metadata"]["totalAssignments"] == 1

    def test_custom_chunk_size(self):
        """Test the max size override splits long text."""
        text = "x" * 1000

        response = client.post("/api/v1/extraction/chunks", json={"text": text, "max_chunk_size": 200})

        chunks = response.json()["syllabusChunks"]
        assert len(chunks) > 1
        assert "".join(chunks) == text

    def test_chunk_size_too_small(self):
        """Test the lower bound on max_chunk_size."""
        response = client.post("/api/v1/extraction/chunks", json={"text": "abc", "max_chunk_size": 10})

        assert response.status_code == 422


class TestConfigValidator:
    """Test startup validation."""

    @patch("core.config.MODEL_EXTRACTION_ENABLED", True)
    @patch("core.config_validator.requests.get")
    def test_unreachable_model_is_a_warning(self, mock_get):
        """Test Ollama being down does not block startup."""
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")

        result = ConfigValidator().validate_all()

        assert result["valid"] is True
        assert any("degraded" in w for w in result["warnings"])

    @patch("core.config.MODEL_EXTRACTION_ENABLED", True)
    @patch("core.config.OLLAMA_EXTRACTION_MODEL", "mixtral:latest")
    @patch("core.config_validator.requests.get")
    def test_missing_model_warning(self, mock_get):
        """Test a missing model is reported with a pull hint."""
        mock_get.return_value.json.return_value = {"models": [{"name": "llama3:latest"}]}

        result = ConfigValidator().validate_all()

        assert any("ollama pull mixtral:latest" in w for w in result["warnings"])

    @patch("core.config.MODEL_EXTRACTION_ENABLED", False)
    def test_disabled_model(self):
        """Test the heuristic-only configuration."""
        result = ConfigValidator().validate_all()

        assert any("disabled" in w for w in result["warnings"])

    @patch("core.config.MAX_CHUNK_SIZE", 0)
    @patch("core.config.MODEL_EXTRACTION_ENABLED", False)
    def test_invalid_chunk_size_is_an_error(self):
        """Test bad settings make validation fail."""
        result = ConfigValidator().validate_all()

        assert result["valid"] is False
        assert any("MAX_CHUNK_SIZE" in e for e in result["errors"])
