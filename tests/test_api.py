"""
HTTP flow: build a bank through the API and generate papers from it
"""
OWNER = {"X-User-Id": "teacher-1"}
STRANGER = {"X-User-Id": "teacher-2"}


def make_bank(client):
    lesson = client.post("/api/lessons/", json={"name": "Physics"}, headers=OWNER).json()
    chapter = client.post(
        "/api/chapters/", json={"name": "Motion", "lesson_id": lesson["id"]}, headers=OWNER
    ).json()
    questions = [
        {
            "content": f"Motion question {i}",
            "chapter_id": chapter["id"],
            "level": "understanding",
            "category": "single_choice",
            "answers": [
                {"value": "yes", "score": 1, "is_correct": True},
                {"value": "no"},
            ],
        }
        for i in range(4)
    ]
    response = client.post("/api/questions/", json={"questions": questions}, headers=OWNER)
    assert response.status_code == 201
    return lesson, chapter


def generate_payload(lesson, chapter, **overrides):
    payload = {
        "label": "Final",
        "time": 60,
        "lesson_id": lesson["id"],
        "scales": [{"chapter_id": chapter["id"], "level": "understanding", "percent": 100}],
        "total_questions": 4,
        "number_exams": 2,
        "sku": "phy",
        "seed": 5,
    }
    payload.update(overrides)
    return payload


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_missing_identity_is_rejected(client):
    response = client.get("/api/lessons/")
    assert response.status_code == 401
    assert response.json()["error"] == "http_error"


def test_generate_flow(client):
    lesson, chapter = make_bank(client)

    response = client.post("/api/exams/generate", json=generate_payload(lesson, chapter), headers=OWNER)

    assert response.status_code == 201
    exams = response.json()
    assert len(exams) == 2
    assert all(exam["sku"].startswith("PHY") for exam in exams)
    assert all(len(exam["questions"]) == 4 for exam in exams)
    assert exams[0]["lesson"] == {"lesson_id": lesson["id"], "name": "Physics"}

    detail = client.get(f"/api/exams/{exams[0]['id']}", headers=OWNER).json()
    assert detail["questions"] == exams[0]["questions"]

    listed = client.get(f"/api/lessons/{lesson['id']}/exams", params={"sku": "phy"}, headers=OWNER).json()
    assert {exam["id"] for exam in listed} == {exam["id"] for exam in exams}

    stored = client.get(f"/api/lessons/{lesson['id']}", headers=OWNER).json()
    assert stored["exam_ids"] == [exam["id"] for exam in exams]


def test_business_errors_use_error_envelope(client):
    lesson, chapter = make_bank(client)

    response = client.post(
        "/api/exams/generate", json=generate_payload(lesson, chapter, total_questions=8), headers=OWNER
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "insufficient_questions"
    assert "4" in body["message"] and "8" in body["message"]

    response = client.post("/api/exams/generate", json=generate_payload(lesson, chapter), headers=STRANGER)
    assert response.status_code == 403
    assert response.json()["error"] == "no_permission"


def test_scale_percent_bounds_validated(client):
    lesson, chapter = make_bank(client)
    payload = generate_payload(
        lesson, chapter,
        scales=[{"chapter_id": chapter["id"], "level": "understanding", "percent": 5}],
    )
    assert client.post("/api/exams/generate", json=payload, headers=OWNER).status_code == 422


def test_picture_upload_endpoint(client):
    lesson, chapter = make_bank(client)
    question = client.get("/api/questions/", params={"chapter_id": chapter["id"]}, headers=OWNER).json()[0]

    response = client.put(
        f"/api/questions/{question['id']}/picture",
        files={"file": ("diagram.png", b"image-bytes", "image/png")},
        headers=OWNER,
    )

    assert response.status_code == 200
    assert response.json()["picture"].endswith("-diagram.png")
