#!/usr/bin/env python3
"""Flatten a résumé JSON file into content records and upload them.

Usage examples:
    # Ingest data/resume.json into a local server
    uv run python scripts/ingest_resume.py

    # Ingest into a deployed instance with an admin key
    uv run python scripts/ingest_resume.py --url https://folio.example.com --api-key s3cret

    # Print the generated records without uploading
    uv run python scripts/ingest_resume.py --dry-run
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

import httpx


def _scalar_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Keep only values the vector index can carry as metadata."""
    kept: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str | int | float | bool):
            kept[key] = value
        elif isinstance(value, list) and all(isinstance(v, str) for v in value):
            kept[key] = value
    return kept


def _numbered(items: list[str]) -> str:
    return " ".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def _personal(personal: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": "personal_info",
        "category": "personal",
        "text": (
            f"{personal['name']} is based in {personal['location']}. "
            f"Contact: {personal['email']}, Phone: {personal['phone']}. "
            f"LinkedIn: {personal['linkedin']}, GitHub: {personal['github']}"
        ),
        "metadata": {"title": "Personal Information", **_scalar_fields(personal)},
    }


def _education(edu: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": "education",
        "category": "education",
        "text": (
            f"Education: {edu['degree']} from {edu['university']}, graduating "
            f"{edu['graduation']} with GPA {edu['gpa']}. "
            f"Honors: {', '.join(edu.get('honors', []))}. "
            f"Relevant coursework includes: {', '.join(edu.get('coursework', []))}."
        ),
        "metadata": {"title": "Education", **_scalar_fields(edu)},
    }


def _work(work: dict[str, Any]) -> list[dict[str, Any]]:
    technologies = work.get("technologies", [])
    achievements = work.get("achievements", [])
    base = {
        "title": work["title"],
        "organization": work["company"],
        "period": work["period"],
        "technologies": technologies,
    }
    records = [
        {
            "id": work["id"],
            "category": "work",
            "text": (
                f"Work Experience: {work['title']} at {work['company']} ({work['period']}). "
                f"Technologies used: {', '.join(technologies)}. "
                f"Key achievements: {_numbered(achievements)}"
            ),
            "metadata": {**base, **_scalar_fields({"location": work.get("location")})},
        }
    ]
    for n, achievement in enumerate(achievements):
        records.append({
            "id": f"{work['id']}_achievement_{n}",
            "category": "work",
            "text": f"At {work['company']} as {work['title']}: {achievement}",
            "metadata": {**base, "achievement": achievement},
        })
    return records


def _project(project: dict[str, Any]) -> list[dict[str, Any]]:
    technologies = project.get("technologies", [])
    achievements = project.get("achievements", [])
    base = {
        "title": project["name"],
        "period": project["period"],
        "technologies": technologies,
    }
    records = [
        {
            "id": project["id"],
            "category": "project",
            "text": (
                f"Project: {project['name']} ({project['period']}). {project['description']}. "
                f"Technologies: {', '.join(technologies)}. "
                f"Achievements: {_numbered(achievements)}"
            ),
            "metadata": {**base, "description": project["description"]},
        }
    ]
    for n, achievement in enumerate(achievements):
        records.append({
            "id": f"{project['id']}_achievement_{n}",
            "category": "project",
            "text": f"{project['name']} project: {achievement}",
            "metadata": {**base, "achievement": achievement},
        })
    return records


def _skills(skills: dict[str, Any]) -> list[dict[str, Any]]:
    databases = skills.get("databases", {})
    relational = databases.get("relational", [])
    nosql = databases.get("nosql", [])
    return [
        {
            "id": "skills_languages",
            "category": "skill",
            "text": f"Programming languages: {', '.join(skills.get('languages', []))}",
            "metadata": {
                "title": "Programming Languages",
                "skill_group": "languages",
                "skills": skills.get("languages", []),
            },
        },
        {
            "id": "skills_technologies",
            "category": "skill",
            "text": f"Technologies and frameworks: {', '.join(skills.get('technologies', []))}",
            "metadata": {
                "title": "Technologies",
                "skill_group": "technologies",
                "skills": skills.get("technologies", []),
            },
        },
        {
            "id": "skills_databases",
            "category": "skill",
            "text": (
                f"Database experience: Relational databases ({', '.join(relational)}), "
                f"NoSQL databases ({', '.join(nosql)})"
            ),
            "metadata": {
                "title": "Databases",
                "skill_group": "databases",
                "relational": relational,
                "nosql": nosql,
            },
        },
    ]


def build_records(resume: dict[str, Any]) -> list[dict[str, Any]]:
    """Convert a résumé document into ingest-ready content records."""
    records: list[dict[str, Any]] = []
    if "personal" in resume:
        records.append(_personal(resume["personal"]))
    if "education" in resume:
        records.append(_education(resume["education"]))
    for work in resume.get("workExperience", []):
        records.extend(_work(work))
    for project in resume.get("projects", []):
        records.extend(_project(project))
    if "skills" in resume:
        records.extend(_skills(resume["skills"]))
    return records


def upload(
    records: list[dict[str, Any]],
    base_url: str,
    api_key: str | None = None,
    client: httpx.Client | None = None,
) -> dict[str, int]:
    """POST records to the ingest endpoint and return its counts."""
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    url = f"{base_url.rstrip('/')}/api/admin/ingest"
    owns_client = client is None
    client = client or httpx.Client(timeout=120)
    try:
        resp = client.post(url, json=records, headers=headers)
        resp.raise_for_status()
        return resp.json()
    finally:
        if owns_client:
            client.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Ingest a résumé into the portfolio chatbot")
    parser.add_argument("--file", "-f", default="data/resume.json", help="Résumé JSON path")
    parser.add_argument(
        "--url",
        default=os.getenv("WORKER_URL", "http://localhost:8787"),
        help="Base URL of the chatbot server (default: $WORKER_URL or localhost:8787)",
    )
    parser.add_argument(
        "--api-key",
        default=os.getenv("ADMIN_API_KEY"),
        help="Admin bearer token (default: $ADMIN_API_KEY)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print records, do not upload")
    args = parser.parse_args()

    resume = json.loads(Path(args.file).read_text(encoding="utf-8"))
    records = build_records(resume)
    print(f"Generated {len(records)} content records")

    if args.dry_run:
        print(json.dumps(records, indent=2))
        return

    print(f"Uploading to: {args.url}")
    try:
        result = upload(records, args.url, args.api_key)
    except httpx.HTTPError as exc:
        print(f"ERROR: upload failed: {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"Ingestion complete: {result['succeeded']} succeeded, {result['failed']} failed")


if __name__ == "__main__":
    main()
