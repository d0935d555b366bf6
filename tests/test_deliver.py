import httpx
import pytest

from jobfeed.errors import FatalConfigError
from jobfeed.io.deliver import upload_csv


def test_upload_csv_posts_file_with_bearer(tmp_path):
    csv = tmp_path / "combined_results.csv"
    csv.write_text("id\n1\n")
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = request.read()
        return httpx.Response(200)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        status = upload_csv(csv, "https://hooks.example/upload", "t0k", client=client)
    assert status == 200
    assert seen["auth"] == "Bearer t0k"
    assert b'name="file"' in seen["body"]
    assert b'filename="combined_results.csv"' in seen["body"]


def test_upload_csv_needs_url_and_file(tmp_path):
    with pytest.raises(FatalConfigError):
        upload_csv(tmp_path / "x.csv", "")
    with pytest.raises(FatalConfigError):
        upload_csv(tmp_path / "missing.csv", "https://hooks.example/upload")
