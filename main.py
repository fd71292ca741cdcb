#!/usr/bin/env python3
"""
PrepCoach - Main Entry Point.

Usage:
    python main.py          # Run the FastAPI server
    python main.py --cli    # Run a CLI coaching demo (for testing)
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path


def setup_python_path():
    """Add project root to Python path."""
    project_root = Path(__file__).parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


def create_data_directories():
    """Ensure the data directory for the JSON store exists."""
    project_root = Path(__file__).parent
    (project_root / "data").mkdir(parents=True, exist_ok=True)


def run_server(host: str = None, port: int = None):
    """Launch the FastAPI server with uvicorn."""
    import uvicorn
    from prepcoach.core.config import configure_logging, get_settings

    # Configure logging before starting server
    configure_logging()
    settings = get_settings()

    if host is None:
        host = os.getenv("HOST", "127.0.0.1")
    if port is None:
        port = int(os.getenv("PORT", "8000"))

    print("\n" + "=" * 60)
    print("🎯  PrepCoach - Interview Preparation Coach")
    print("=" * 60)
    print(f"\n📚 API Docs: http://{host}:{port}/api/docs")
    print(f"📦 Persistence: {settings.PERSISTENCE_BACKEND}")
    print("\nPress Ctrl+C to stop the server\n")

    uvicorn.run(
        "prepcoach.api.app:app",
        host=host,
        port=port,
        reload=settings.DEBUG_MODE,
        reload_dirs=["prepcoach"] if settings.DEBUG_MODE else None,
        workers=1,
        log_level="info",
        access_log=False,  # Reduce log noise
    )


async def run_cli_demo():
    """Run one mock interview answer through the full pipeline."""
    setup_python_path()

    from prepcoach.app.analytics import PredictiveAnalyticsService
    from prepcoach.app.orchestrator import create_orchestrator
    from prepcoach.core.config import configure_logging
    from prepcoach.infra.llm.gemini import create_ai_service
    from prepcoach.infra.persistence.repository import create_repository

    configure_logging()
    logger = logging.getLogger(__name__)

    print("\n" + "=" * 60)
    print("🎯  PrepCoach - CLI Demo")
    print("=" * 60 + "\n")

    repository = create_repository()
    orchestrator = create_orchestrator(repository, create_ai_service())
    analytics = PredictiveAnalyticsService(repository)

    question = "Tell me about a time you had to lead a team through a difficult deadline."
    print(f"🎯 Question: {question}\n")

    try:
        coaching = orchestrator.get_smart_coaching(question)
        print(f"🧭 Framework: {coaching.suggested_framework} ({coaching.estimated_duration})")
        for insight in coaching.insights:
            print(f"   [{insight.priority.value}] {insight.title}")

        answer = input("\n💬 Your answer (or press Enter for mock): ").strip()
        if not answer:
            answer = (
                "So at my last company I led a team of four engineers, um, we had a "
                "release deadline in two weeks. I broke the work into daily goals and "
                "basically cut scope with the product owner. We shipped on time and "
                "reduced support tickets by like thirty percent."
            )
            print("   (Using mock answer)")

        duration = len(answer.split()) / 2.5  # ~150 WPM estimate

        print("\n⏳ Processing...")
        session = orchestrator.create_session("cli-user")
        orchestrator.start_session(session.session_id)
        response, insights = await orchestrator.record_response(
            session.session_id, question, answer, duration_seconds=duration,
        )

        metrics = response.metrics
        print(f"\n📊 Speech Metrics:")
        print(f"   Pace: {metrics.pace}/100 ({metrics.words_per_minute} WPM)")
        print(f"   Clarity: {metrics.clarity}/100")
        print(f"   Confidence: {metrics.confidence}/100")
        print(f"   Filler words: {metrics.filler_word_count}")
        for suggestion in metrics.suggestions:
            print(f"   💡 {suggestion}")

        print(f"\n⭐ Response score: {response.score}")
        for insight in insights:
            print(f"   [{insight.priority.value}] {insight.title}: {insight.actionable_advice}")

        summary = orchestrator.end_session(session.session_id)
        insights_report = analytics.generate_predictive_insights("cli-user")

        print("\n" + "=" * 60)
        print("🏁 Session Complete!")
        print(f"   Overall score: {summary.get('overall_score')}")
        print(f"   Readiness: {insights_report.predictions.interview_readiness}")
        print(f"   Next milestone: {insights_report.recommendations.next_milestone}")
        print("=" * 60 + "\n")

    except Exception as e:
        logger.error(f"Demo error: {e}", exc_info=True)
        print(f"\n❌ Error: {e}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="PrepCoach - Interview Preparation Coach"
    )
    parser.add_argument(
        "--cli",
        action="store_true",
        help="Run in CLI mode instead of web server",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind the server (default: HOST env or 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server (default: PORT env or 8000)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    # Setup
    setup_python_path()
    create_data_directories()

    # Set debug mode
    if args.debug:
        os.environ["LOG_LEVEL"] = "DEBUG"

    if args.cli:
        asyncio.run(run_cli_demo())
    else:
        run_server(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
