"""
Grade Loader Script - uploads a grade CSV to a running portal via the API.

Usage:
    python load_grades.py <course_id> <grades.csv> <instructor_user_id>
    API_URL=http://backend:8000 python load_grades.py 1 grades.csv 2

The CSV needs a header row with student_id or email, and grade.
"""

import os
import sys

import httpx


def upload_grades(api_url: str, course_id: int, csv_path: str, user_id: int,
                  client: httpx.Client = None) -> dict:
    """POST the file to the grade upload endpoint and return the batch summary."""
    url = f"{api_url.rstrip('/')}/api/instructor/upload-grades-file"
    owns_client = client is None
    client = client or httpx.Client(timeout=30.0)
    try:
        with open(csv_path, "rb") as f:
            resp = client.post(
                url,
                data={"course_id": str(course_id)},
                files={"file": (os.path.basename(csv_path), f, "text/csv")},
                headers={"X-User-Id": str(user_id)},
            )
        resp.raise_for_status()
        return resp.json()
    finally:
        if owns_client:
            client.close()


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 3:
        print(__doc__)
        return 2

    course_id, csv_path, user_id = int(argv[0]), argv[1], int(argv[2])
    if not os.path.exists(csv_path):
        print(f"Error: Could not find {csv_path}")
        return 1

    api_url = os.getenv("API_URL", "http://localhost:8000")
    print(f"Uploading {csv_path} for course {course_id} to {api_url}")
    result = upload_grades(api_url, course_id, csv_path, user_id)

    print("=" * 60)
    print("GRADE UPLOAD SUMMARY")
    print("=" * 60)
    print(f"  Processed: {result.get('processed', '?')}")
    print(f"  Errors:    {len(result.get('errors', []))}")
    print("=" * 60)
    for error in result.get("errors", []):
        print(f"  ❌ {error}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
