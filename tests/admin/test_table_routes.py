from unittest.mock import patch

from tests.admin.base import *  # noqa: F401,F403

from app.api.admin.table_modules.students import StudentsTable
from app.schemas.admin_table import SortSpec
from app.services.admin_table_query import QueryContract
from app.services.admin_table_store import SqlAlchemyEntityStore


class AdminTableAccessTests(AdminTableTestBase):
    def test_missing_token_is_unauthorized_envelope(self):
        response = self.client.get("/api/admin/students")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": {"code": "UNAUTHORIZED"}})

    def test_garbage_token_is_unauthorized(self):
        response = self.client.get("/api/admin/students", headers={"Authorization": "Bearer not-a-jwt"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "UNAUTHORIZED")

    def test_token_without_tenant_is_unauthorized(self):
        response = self.client.get("/api/admin/students", headers=self._tenantless_headers())
        self.assertEqual(response.status_code, 401)

    def test_tutor_role_is_forbidden(self):
        response = self.client.get("/api/admin/students/export", headers=self._auth_headers("TUTOR", self.tenant_id))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": {"code": "FORBIDDEN"}})

    def test_owner_and_admin_are_allowed(self):
        for role in ("OWNER", "ADMIN"):
            response = self.client.get("/api/admin/programs", headers=self._auth_headers(role, self.tenant_id))
            self.assertEqual(response.status_code, 200, role)

    def test_invalid_query_is_rejected_before_any_read(self):
        with patch.object(SqlAlchemyEntityStore, "count_sync") as count_sync:
            response = self.client.get(
                "/api/admin/students",
                params={"sortField": "notes"},
                headers=self._auth_headers("ADMIN", self.tenant_id),
            )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["error"]["code"], "INVALID_QUERY")
        self.assertEqual(body["error"]["details"]["field"], "sortField")
        count_sync.assert_not_called()

    def test_malformed_paging_and_filters_are_client_errors(self):
        headers = self._auth_headers("ADMIN", self.tenant_id)
        with patch.object(SqlAlchemyEntityStore, "find_sync") as find_sync:
            too_deep = self.client.get("/api/admin/programs", params={"filters": "[" * 5000}, headers=headers)
            too_far = self.client.get("/api/admin/programs", params={"page": str(10**30)}, headers=headers)
        self.assertEqual(too_deep.status_code, 400)
        self.assertEqual(too_deep.json()["error"]["details"]["reason"], "INVALID_JSON")
        self.assertEqual(too_far.status_code, 400)
        self.assertEqual(too_far.json()["error"], {"code": "INVALID_QUERY", "details": {"field": "page", "reason": "OUT_OF_RANGE"}})
        find_sync.assert_not_called()

    def test_store_failure_is_internal_error_without_details(self):
        with patch.object(SqlAlchemyEntityStore, "find_sync", side_effect=RuntimeError("db gone")):
            response = self.client.get("/api/admin/programs", headers=self._auth_headers("ADMIN", self.tenant_id))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": {"code": "INTERNAL_ERROR"}})

    def test_error_responses_keep_security_headers_and_request_id(self):
        response = self.client.get("/api/admin/students", headers={"X-Request-ID": "audit-check-1"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers.get("x-content-type-options"), "nosniff")
        self.assertEqual(response.headers.get("cache-control"), "no-store")
        self.assertEqual(response.headers.get("x-request-id"), "audit-check-1")

    def test_tables_meta_lists_resources(self):
        headers = self._auth_headers("ADMIN", self.tenant_id)
        response = self.client.get("/api/admin/tables", headers=headers)
        self.assertEqual(response.status_code, 200)
        keys = [table["resource"] for table in response.json()["tables"]]
        self.assertEqual(sorted(keys), ["announcements", "attendance", "programs", "requests", "sessions", "students"])

        missing = self.client.get("/api/admin/tables/invoices", headers=headers)
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json(), {"error": {"code": "NOT_FOUND"}})


class StudentTableTests(AdminTableTestBase):
    def test_search_page_two_returns_rows_26_to_50_of_tenant_matches(self):
        other_tenant = self._create_tenant("south")
        expected = []
        for index in range(45):
            expected.append((f"Lee{index:02d}", "Jane", self._create_student("Jane", f"Lee{index:02d}", minutes=index)))
        # Same name: only the id can order these.
        for index in range(5):
            expected.append(("Same", "Jane", self._create_student("Jane", "Same", minutes=index)))
        expected.append(("Smith", "Mary", self._create_student("Mary", "Smith", preferred_name="JANEY")))
        expected.append(("Marjane", "Ola", self._create_student("Ola", "Marjane")))
        for index in range(10):
            self._create_student("Tom", f"Other{index}")
        for index in range(5):
            self._create_student("Jane", f"Aaa{index}", tenant_id=other_tenant)

        expected.sort(key=lambda item: (item[0], item[1], item[2].hex))

        response = self.client.get(
            "/api/admin/students",
            params={"search": "Jane", "sortField": "name", "sortDir": "asc", "page": "2", "pageSize": "25"},
            headers=self._auth_headers("ADMIN", self.tenant_id),
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["totalCount"], 52)
        self.assertEqual(body["page"], 2)
        self.assertEqual(body["pageSize"], 25)
        self.assertEqual(body["sort"], {"field": "name", "dir": "asc"})
        self.assertEqual(body["appliedFilters"], {})
        self.assertEqual([row["id"] for row in body["rows"]], [str(item[2]) for item in expected[25:50]])
        self.assertTrue(all("notes" not in row for row in body["rows"]))

    def test_has_parents_and_inactive_filters(self):
        with_parent = self._create_student("Ana", "Kim")
        self._create_student("Ben", "Park")
        archived = self._create_student("Cy", "Lo", status="ARCHIVED")
        inactive = self._create_student("Di", "Ng", status="INACTIVE")
        parent = Parent(id=uuid4(), tenant_id=self.tenant_id, email="kim.parent@example.com")
        self._add(parent)
        self._add(StudentParent(id=uuid4(), tenant_id=self.tenant_id, student_id=with_parent, parent_id=parent.id))
        headers = self._auth_headers("ADMIN", self.tenant_id)

        response = self.client.get("/api/admin/students", params={"filters": '{"hasParents": true}'}, headers=headers)
        rows = response.json()["rows"]
        self.assertEqual([row["id"] for row in rows], [str(with_parent)])
        self.assertEqual(rows[0]["parentCount"], 1)

        response = self.client.get("/api/admin/students", params={"filters": '{"status": "INACTIVE"}'}, headers=headers)
        self.assertEqual({row["id"] for row in response.json()["rows"]}, {str(archived), str(inactive)})
        self.assertEqual(response.json()["appliedFilters"], {"status": "INACTIVE"})

    def test_export_writes_csv_headers_and_audit_row(self):
        self._create_student("Jane", "Doe", notes="allergic to peanuts")
        self._create_student("Jim", "O'Hara, Jr.")
        self._create_student("Zed", "Zulu")
        headers = self._auth_headers("ADMIN", self.tenant_id, email="owner@school.test")

        response = self.client.get(
            "/api/admin/students/export",
            params={"search": "J", "filters": '{"status": "ACTIVE"}'},
            headers=headers,
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        self.assertRegex(
            response.headers["content-disposition"],
            r'^attachment; filename="students-\d{8}-\d{4}\.csv"$',
        )
        self.assertEqual(response.headers["x-export-truncated"], "false")
        self.assertEqual(response.headers["x-export-total-count"], "2")
        self.assertEqual(response.headers["x-export-row-count"], "2")
        self.assertEqual(response.headers["cache-control"], "no-store")

        lines = response.text.split("\r\n")
        self.assertEqual(lines[0], "Name,Status,Level,Parent Count,Created At")
        self.assertTrue(lines[1].startswith("Jane Doe,ACTIVE,,0,"))
        self.assertTrue(lines[2].startswith('"Jim O\'Hara, Jr.",ACTIVE'))
        self.assertNotIn("peanuts", response.text)

        with self.SessionLocal() as db:
            entries = db.query(AuditLog).all()
        self.assertEqual(len(entries), 1)
        entry = entries[0]
        self.assertEqual(entry.tenant_id, self.tenant_id)
        self.assertEqual((entry.entity, entry.entity_id, entry.action), ("report", "students", "REPORT_EXPORTED"))
        self.assertEqual(entry.actor_display, "owner@school.test")
        self.assertEqual(
            entry.diff,
            {
                "filterKeys": ["status"],
                "hasSearch": True,
                "sort": {"field": "name", "dir": "asc"},
                "rowCount": 2,
                "totalCount": 2,
                "truncated": False,
            },
        )

    def test_export_over_cap_is_truncated(self):
        for index in range(3):
            self._create_student("Jane", f"Doe{index}")
        capped = QueryContract(
            filter_schema=StudentsTable.contract.filter_schema,
            allowed_sort_fields=StudentsTable.contract.allowed_sort_fields,
            default_sort=SortSpec(field="name", dir="asc"),
            default_page_size=2,
            max_page_size=2,
            max_export_rows=2,
        )
        with patch.object(StudentsTable, "contract", capped):
            response = self.client.get("/api/admin/students/export", headers=self._auth_headers("OWNER", self.tenant_id))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["x-export-truncated"], "true")
        self.assertEqual(response.headers["x-export-total-count"], "3")
        self.assertEqual(response.headers["x-export-row-count"], "2")
        self.assertEqual(len(response.text.strip().split("\r\n")), 3)


class ProgramTableTests(AdminTableTestBase):
    def test_ties_page_deterministically_by_id(self):
        ids = []
        for index in range(7):
            program = Program(id=uuid4(), tenant_id=self.tenant_id, name="Algebra", created_at=BASE_TIME)
            self._add(program)
            ids.append(program.id)
        headers = self._auth_headers("ADMIN", self.tenant_id)

        seen = []
        for page in (1, 2, 3):
            response = self.client.get(
                "/api/admin/programs",
                params={"sortField": "createdAt", "sortDir": "desc", "page": str(page), "pageSize": "3"},
                headers=headers,
            )
            seen.extend(row["id"] for row in response.json()["rows"])
        self.assertEqual(seen, [str(value) for value in sorted(ids, key=lambda value: value.hex)])

    def test_other_tenant_rows_never_leak(self):
        other_tenant = self._create_tenant("south")
        level = Level(id=uuid4(), tenant_id=other_tenant, name="Grade 5")
        self._add(level)
        self._add(Program(id=uuid4(), tenant_id=other_tenant, name="Geometry", level_id=level.id))
        self._add(Program(id=uuid4(), tenant_id=self.tenant_id, name="Geometry"))
        headers = self._auth_headers("ADMIN", self.tenant_id)

        response = self.client.get("/api/admin/programs", params={"search": "geo"}, headers=headers)
        self.assertEqual(response.json()["totalCount"], 1)

        response = self.client.get(
            "/api/admin/programs",
            params={"filters": json.dumps({"levelId": str(level.id)})},
            headers=headers,
        )
        self.assertEqual(response.json()["totalCount"], 0)
        self.assertEqual(response.json()["rows"], [])


class SessionAndAttendanceTableTests(AdminTableTestBase):
    def setUp(self):
        super().setUp()
        self.tutor_id = self._create_tutor("Rosa Diaz", "rosa@school.test")
        self.center_id = self._create_center()

    def test_single_day_range_includes_whole_day_only(self):
        day_start = datetime(2024, 3, 1, 0, 0, tzinfo=timezone.utc)
        inside = [
            self._create_session(tutor_id=self.tutor_id, center_id=self.center_id, start_at=day_start),
            self._create_session(tutor_id=self.tutor_id, center_id=self.center_id, start_at=day_start + timedelta(hours=23, minutes=59, seconds=59)),
        ]
        self._create_session(tutor_id=self.tutor_id, center_id=self.center_id, start_at=day_start + timedelta(days=1))
        self._create_session(tutor_id=self.tutor_id, center_id=self.center_id, start_at=day_start - timedelta(seconds=1))

        response = self.client.get(
            "/api/admin/sessions",
            params={"filters": '{"from": "2024-03-01", "to": "2024-03-01"}'},
            headers=self._auth_headers("ADMIN", self.tenant_id),
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["totalCount"], 2)
        self.assertEqual([row["id"] for row in body["rows"]], [str(value) for value in inside])
        self.assertEqual(body["rows"][0]["tutorName"], "Rosa Diaz")
        self.assertEqual(body["rows"][0]["startAt"], "2024-03-01T00:00:00.000Z")

    def test_session_search_reaches_tutor_email(self):
        other_tutor = self._create_tutor("Amir Shah", "amir@school.test")
        mine = self._create_session(tutor_id=self.tutor_id, center_id=self.center_id, start_at=BASE_TIME)
        self._create_session(tutor_id=other_tutor, center_id=self.center_id, start_at=BASE_TIME)

        response = self.client.get(
            "/api/admin/sessions",
            params={"search": "ROSA@"},
            headers=self._auth_headers("ADMIN", self.tenant_id),
        )
        self.assertEqual([row["id"] for row in response.json()["rows"]], [str(mine)])

    def test_attendance_sorts_by_session_start(self):
        student_id = self._create_student("Jane", "Doe")
        late_session = self._create_session(tutor_id=self.tutor_id, center_id=self.center_id, start_at=BASE_TIME + timedelta(days=2))
        early_session = self._create_session(tutor_id=self.tutor_id, center_id=self.center_id, start_at=BASE_TIME)
        late_mark = Attendance(id=uuid4(), tenant_id=self.tenant_id, session_id=late_session, student_id=student_id, status="PRESENT", marked_at=BASE_TIME)
        early_mark = Attendance(id=uuid4(), tenant_id=self.tenant_id, session_id=early_session, student_id=student_id, status="LATE", marked_at=BASE_TIME + timedelta(days=3))
        self._add(late_mark, early_mark)

        response = self.client.get(
            "/api/admin/attendance",
            params={"sortField": "sessionStartAt", "sortDir": "asc"},
            headers=self._auth_headers("ADMIN", self.tenant_id),
        )
        body = response.json()
        self.assertEqual([row["id"] for row in body["rows"]], [str(early_mark.id), str(late_mark.id)])
        self.assertEqual(body["rows"][0]["studentName"], "Jane Doe")

        response = self.client.get(
            "/api/admin/attendance",
            params={"filters": '{"status": "LATE"}'},
            headers=self._auth_headers("ADMIN", self.tenant_id),
        )
        self.assertEqual([row["id"] for row in response.json()["rows"]], [str(early_mark.id)])

    def test_requests_only_list_absences(self):
        student_id = self._create_student("Jane", "Doe")
        session_id = self._create_session(tutor_id=self.tutor_id, center_id=self.center_id, start_at=BASE_TIME)
        parent = Parent(id=uuid4(), tenant_id=self.tenant_id, email="doe.parent@example.com")
        self._add(parent)
        absence = ParentRequest(id=uuid4(), tenant_id=self.tenant_id, type="ABSENCE", student_id=student_id, parent_id=parent.id, session_id=session_id, message="sick")
        other = ParentRequest(id=uuid4(), tenant_id=self.tenant_id, type="RESCHEDULE", student_id=student_id, parent_id=parent.id, session_id=session_id)
        self._add(absence, other)

        response = self.client.get(
            "/api/admin/requests",
            params={"search": "doe.parent"},
            headers=self._auth_headers("ADMIN", self.tenant_id),
        )
        body = response.json()
        self.assertEqual([row["id"] for row in body["rows"]], [str(absence.id)])
        self.assertEqual(body["rows"][0]["parentEmail"], "doe.parent@example.com")
        self.assertNotIn("message", body["rows"][0])


class AnnouncementTableTests(AdminTableTestBase):
    def test_date_range_uses_creation_for_drafts_and_publication_otherwise(self):
        march = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
        january = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
        draft_in_march = Announcement(id=uuid4(), tenant_id=self.tenant_id, title="Draft", body="x", status="DRAFT", created_at=march)
        published_in_march = Announcement(id=uuid4(), tenant_id=self.tenant_id, title="Live", body="x", status="PUBLISHED", created_at=january, published_at=march)
        published_in_january = Announcement(id=uuid4(), tenant_id=self.tenant_id, title="Old", body="x", status="PUBLISHED", created_at=march, published_at=january)
        self._add(draft_in_march, published_in_march, published_in_january)
        headers = self._auth_headers("ADMIN", self.tenant_id)
        dates = {"from": "2024-03-01", "to": "2024-03-31"}

        response = self.client.get("/api/admin/announcements", params={"filters": json.dumps(dates)}, headers=headers)
        self.assertEqual(
            {row["id"] for row in response.json()["rows"]},
            {str(draft_in_march.id), str(published_in_march.id)},
        )

        response = self.client.get(
            "/api/admin/announcements",
            params={"filters": json.dumps({**dates, "status": "PUBLISHED"})},
            headers=headers,
        )
        self.assertEqual([row["id"] for row in response.json()["rows"]], [str(published_in_march.id)])
        self.assertNotIn("body", response.json()["rows"][0])
