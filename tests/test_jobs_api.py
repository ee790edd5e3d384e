def _job(**overrides):
    job = {
        "title": "Python Dev",
        "company": "Acme",
        "description": "Need python and sql",
        "skills": ["Python", " SQL ", "python", ""],
        "location": "Remote",
    }
    job.update(overrides)
    return job


def test_list_jobs_is_public_and_empty(client):
    r = client.get("/jobs")
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "count": 0, "jobs": []}


def test_create_job_embeds_description_only(client, headers, fake_backend, db_session):
    from jobmatch.app.models.job import Job

    r = client.post("/jobs", headers=headers, json=_job())
    assert r.status_code == 201, r.text
    job = r.json()["job"]
    assert job["skills"] == ["Python", "SQL"]
    assert job["has_embedding"] is True
    assert fake_backend.calls == ["Need python and sql"]

    row = db_session.query(Job).one()
    assert row.dim == 6
    assert row.embedding_json.startswith("[")

    listed = client.get("/jobs").json()
    assert listed["count"] == 1
    assert listed["jobs"][0]["title"] == "Python Dev"


def test_create_job_requires_description(client, headers):
    r = client.post("/jobs", headers=headers, json=_job(description="   "))
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Job information is incomplete. A description is required."


def test_create_job_validation_is_400(client, headers):
    r = client.post("/jobs", headers=headers, json={"company": "Acme"})
    assert r.status_code == 400, r.text
    assert r.json()["details"]["errors"]


def test_apply_and_list_applied(client, headers):
    job_id = client.post("/jobs", headers=headers, json=_job()).json()["job"]["id"]

    r = client.post("/jobs/apply", headers=headers, json={"job_id": job_id, "match_percentage": 87.5})
    assert r.status_code == 201, r.text
    application = r.json()["application"]
    assert application["company"] == "Acme"
    assert application["job_role"] == "Python Dev"
    assert application["status"] == "Applied"
    assert application["match_percentage"] == 87.5

    r = client.post("/jobs/apply", headers=headers, json={"job_id": job_id, "match_percentage": 87.5})
    assert r.status_code == 409, r.text

    r = client.get("/jobs/applied", headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["count"] == 1
    assert r.json()["applied_jobs"][0]["job_id"] == job_id


def test_apply_unknown_job_is_404(client, headers):
    r = client.post("/jobs/apply", headers=headers, json={"job_id": 999, "match_percentage": 10})
    assert r.status_code == 404, r.text


def test_apply_requires_auth(client):
    assert client.post("/jobs/apply", json={"job_id": 1, "match_percentage": 1}).status_code == 401
    assert client.get("/jobs/applied").status_code == 401


def test_seeder_skips_empty_descriptions(db_engine, embedder, tmp_path):
    import json

    from jobmatch.app.database import SessionLocal
    from jobmatch.app.models.job import Job
    from jobmatch.seed_jobs import seed

    path = tmp_path / "jobs.json"
    path.write_text(
        json.dumps(
            [
                {"jobRoleName": "Data Analyst", "companyName": "Insightly", "description": "sql dashboards"},
                {"title": "Ghost", "company": "Nowhere", "description": "  "},
            ]
        ),
        encoding="utf-8",
    )

    assert seed(path, generator=embedder) == (1, 1)

    db = SessionLocal()
    try:
        jobs = db.query(Job).all()
        assert [(j.title, j.company) for j in jobs] == [("Data Analyst", "Insightly")]
    finally:
        db.close()


def test_bundled_seed_file_loads():
    from jobmatch.seed_jobs import DEFAULT_SEED_FILE, load_postings

    postings = load_postings(DEFAULT_SEED_FILE)
    assert postings
    assert all(p["description"].strip() for p in postings)


def _seed_user_with_application(db):
    from jobmatch.app.models.applied_job import AppliedJob
    from jobmatch.app.models.job import Job
    from jobmatch.app.models.user import User

    user = User(email="applicant@example.com", password="x")
    job = Job(title="Old role", company="Acme", description="python")
    db.add_all([user, job])
    db.flush()
    db.add(AppliedJob(user_id=user.id, job_id=job.id, company=job.company, job_role=job.title))
    db.commit()


def test_seeder_refuses_to_drop_applications(db_session, tmp_path, capsys):
    import json

    from jobmatch.app.models.applied_job import AppliedJob
    from jobmatch.app.models.job import Job
    from jobmatch.seed_jobs import main

    _seed_user_with_application(db_session)
    path = tmp_path / "jobs.json"
    path.write_text(json.dumps([{"title": "New", "company": "Beta", "description": "sql"}]), encoding="utf-8")

    assert main([str(path)]) == 1
    assert "--force" in capsys.readouterr().out

    db_session.expire_all()
    assert db_session.query(Job).count() == 1
    assert db_session.query(AppliedJob).count() == 1


def test_seeder_force_clears_jobs_and_applications(db_session, embedder, tmp_path, capsys):
    import json

    from jobmatch.app.models.applied_job import AppliedJob
    from jobmatch.app.models.job import Job
    from jobmatch.seed_jobs import seed

    _seed_user_with_application(db_session)
    path = tmp_path / "jobs.json"
    path.write_text(json.dumps([{"title": "New", "company": "Beta", "description": "sql"}]), encoding="utf-8")

    assert seed(path, force=True, generator=embedder) == (1, 0)
    assert "Deleted 1 job applications" in capsys.readouterr().out

    db_session.expire_all()
    assert [j.title for j in db_session.query(Job).all()] == ["New"]
    assert db_session.query(AppliedJob).count() == 0
