import io

import config
from services.change_feed import INSERT, feed

COURSE_CSV = "name,center_id,duration_weeks,start_date,room,notes\n" + "".join(
    f"Course {i},1,{i},2024-09-0{i},R{i},n{i}\n" for i in range(1, 8)
)


def test_dashboard_and_center_pages(seeded):
    html = seeded.get("/").get_data(as_text=True)
    assert "North" in html
    html = seeded.get("/centers/1").get_data(as_text=True)
    assert "Early Years" in html
    assert seeded.get("/centers/99").status_code == 404


def test_unknown_pages_render_error_template(client):
    resp = client.get("/tables/spaceships")
    assert resp.status_code == 404
    assert "Page not found" in resp.get_data(as_text=True)


def test_add_view_edit_delete(seeded):
    resp = seeded.post("/tables/courses/new", data={"name": "Robotics", "center_id": "1"})
    assert resp.status_code == 302
    view_url = resp.headers["Location"]
    assert "Robotics" in seeded.get(view_url).get_data(as_text=True)

    record_id = int(view_url.rstrip("/").rsplit("/", 1)[-1])
    resp = seeded.post(f"/tables/courses/{record_id}/edit",
                       data={"name": "Advanced Robotics", "center_id": "1"})
    assert resp.status_code == 302
    assert "Advanced Robotics" in seeded.get("/tables/courses").get_data(as_text=True)

    resp = seeded.post(f"/tables/courses/{record_id}/delete")
    assert resp.status_code == 302
    assert seeded.get(f"/tables/courses/{record_id}").status_code == 404


def test_form_shows_required_errors(seeded):
    resp = seeded.post("/tables/courses/new", data={"description": "x"})
    html = resp.get_data(as_text=True)
    assert resp.status_code == 400
    assert "Name is required" in html


def test_new_form_prefills_scope(seeded):
    html = seeded.get("/tables/courses/new?center_id=1").get_data(as_text=True)
    assert '<option value="1" selected>North</option>' in html


def test_photo_upload_is_stored(seeded):
    data = {
        "employee_id": "7", "name": "Meera", "gender": "Female", "designation": "Teacher",
        "department": "Education", "employment_type": "Full-time", "email": "meera@example.com",
        "phone": "123", "date_of_birth": "1990-01-01", "date_of_joining": "2020-01-01",
        "emergency_contact_name": "Ravi", "emergency_contact": "456", "center_id": "1",
        "profile_picture": (io.BytesIO(b"\x89PNG fake"), "me.png"),
        "lor": (io.BytesIO(b"payload"), "letter.exe"),
    }
    resp = seeded.post("/tables/employees/new", data=data, content_type="multipart/form-data",
                       follow_redirects=True)
    html = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert "Unsupported file type" in html
    stored = list((config.UPLOAD_DIR / "employee-photos").iterdir())
    assert len(stored) == 1
    assert f"/uploads/employee-photos/{stored[0].name}" in html


def test_import_preview_confirm_flow(seeded):
    resp = seeded.post("/tables/courses/import/preview",
                       data={"csv_file": (io.BytesIO(COURSE_CSV.encode()), "courses.csv")},
                       content_type="multipart/form-data")
    html = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert "Course 3" in html and "Course 4" not in html
    assert "<th>room</th>" in html and "<th>notes</th>" not in html

    token = html.split('name="token" value="', 1)[1].split('"', 1)[0]
    resp = seeded.post("/tables/courses/import/confirm", data={"token": token},
                       follow_redirects=True)
    html = resp.get_data(as_text=True)
    assert "Successfully inserted 7 records into courses" in html
    assert "Course 7" in html


def test_import_shows_first_five_errors(seeded):
    rows = "".join(f"{100 + i},Ada,,ada@example.com,10,1\n" for i in range(8))
    csv_text = "student_id,first_name,last_name,student_email,program_id,center_id\n" + rows
    resp = seeded.post("/tables/students/import/preview",
                       data={"csv_file": (io.BytesIO(csv_text.encode()), "s.csv")},
                       content_type="multipart/form-data")
    token = resp.get_data(as_text=True).split('name="token" value="', 1)[1].split('"', 1)[0]

    resp = seeded.post("/tables/students/import/confirm", data={"token": token})
    html = resp.get_data(as_text=True)
    assert resp.status_code == 422
    assert "Row 5: Missing required field" in html
    assert "Row 6:" not in html
    assert "...and 3 more errors" in html


def test_import_with_expired_token_redirects(seeded):
    resp = seeded.post("/tables/courses/import/confirm", data={"token": "f" * 32})
    assert resp.status_code == 302


def test_change_stream(client):
    resp = client.get("/ui-api/changes/courses")
    assert resp.mimetype == "text/event-stream"
    chunks = iter(resp.response)
    assert b"event: ready" in next(chunks)

    feed.publish("courses", INSERT, {"id": 1})
    change = next(chunks)
    assert b"event: change" in change and b'"event": "INSERT"' in change
    resp.close()


def test_import_page_rejects_non_csv_file(seeded):
    resp = seeded.post("/tables/courses/import/preview",
                       data={"csv_file": (io.BytesIO(COURSE_CSV.encode()), "courses.xlsx")},
                       content_type="multipart/form-data")
    html = resp.get_data(as_text=True)
    assert resp.status_code == 400
    assert "Please select a valid CSV file" in html
    assert 'name="token"' not in html
    assert not config.STAGING_DIR.exists()
