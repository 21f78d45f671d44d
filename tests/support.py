"""In-memory stand-ins for the MySQL repositories.

One `World` holds every table; each fake repository is a thin view over it so
scope resolvers, joins and group inference see the same data the services do.
"""
from __future__ import annotations

import dataclasses
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, Optional, Sequence, Set

from werkzeug.security import generate_password_hash

from src.school_attendance.school_attendance.attendance.model import AttendanceRecord
from src.school_attendance.school_attendance.attendance.service import AttendanceService
from src.school_attendance.school_attendance.auth.model import Actor, Credentials
from src.school_attendance.school_attendance.auth.service import AuthService
from src.school_attendance.school_attendance.auth.tokens import TokenService
from src.school_attendance.school_attendance.biometrics.model import BiometricTemplate
from src.school_attendance.school_attendance.biometrics.service import BiometricService
from src.school_attendance.school_attendance.common.pagination import Page
from src.school_attendance.school_attendance.container import Container
from src.school_attendance.school_attendance.core.constants import ATTENDANCE_EXISTS_TODAY, EXCUSE_EXISTS_FOR_DATE
from src.school_attendance.school_attendance.core.enums import RoleName
from src.school_attendance.school_attendance.core.exceptions import ConflictError, ValidationError
from src.school_attendance.school_attendance.districts.model import District
from src.school_attendance.school_attendance.districts.service import DistrictService
from src.school_attendance.school_attendance.excuses.model import DailyExcuse
from src.school_attendance.school_attendance.excuses.service import ExcuseService
from src.school_attendance.school_attendance.groups.model import GroupMember, StudentGroup
from src.school_attendance.school_attendance.groups.service import GroupService
from src.school_attendance.school_attendance.institutions.model import Institution
from src.school_attendance.school_attendance.institutions.service import InstitutionService
from src.school_attendance.school_attendance.roles.model import Role
from src.school_attendance.school_attendance.roles.service import RoleService
from src.school_attendance.school_attendance.scope.authorizer import ResourceKind, ScopeAuthorizer
from src.school_attendance.school_attendance.students.model import Student, StudentWithGroup
from src.school_attendance.school_attendance.students.service import StudentService
from src.school_attendance.school_attendance.users.model import User
from src.school_attendance.school_attendance.users.service import UserService

JWT_SECRET = "test-jwt-secret"

FIXED_NOW = datetime(2026, 3, 2, 8, 15, 0)


def _page(items, page):
    items = list(items)
    return Page(items=items[page.offset : page.offset + page.limit], total=len(items), request=page)


class World:
    def __init__(self):
        self.districts: Dict[int, District] = {}
        self.institutions: Dict[int, Institution] = {}
        self.roles: Dict[int, Role] = {}
        self.users: Dict[int, User] = {}
        self.password_hashes: Dict[int, str] = {}
        self.students: Dict[int, Student] = {}
        self.groups: Dict[int, StudentGroup] = {}
        self.members: Dict[tuple, datetime] = {}
        self.attendance: Dict[int, AttendanceRecord] = {}
        self.excuses: Dict[int, DailyExcuse] = {}
        self.templates: Dict[int, BiometricTemplate] = {}

        for name in RoleName:
            self.add_role(name.value)

    def next_id(self, table: str) -> int:
        return max(getattr(self, table), default=0) + 1

    # ---- seeding ----
    def add_role(self, role_name: str) -> Role:
        role = Role(role_id=self.next_id("roles"), role_name=role_name, description=None, is_active=True)
        self.roles[role.role_id] = role
        return role

    def role_named(self, role_name: str) -> Role:
        return next(r for r in self.roles.values() if r.role_name == role_name)

    def add_district(self, name: str, code: str, district_id: Optional[int] = None) -> District:
        district_id = district_id or self.next_id("districts")
        district = District(
            district_id=district_id, name=name, regional_district_code=code, contact_info=None, is_active=True
        )
        self.districts[district_id] = district
        return district

    def add_institution(self, name: str, district_id: int, institution_id: Optional[int] = None) -> Institution:
        institution_id = institution_id or self.next_id("institutions")
        institution = Institution(
            institution_id=institution_id,
            name=name,
            district_id=district_id,
            address=None,
            subscription_status="Active",
            configuration_data='{"timezone": "America/Santo_Domingo"}',
        )
        self.institutions[institution_id] = institution
        return institution

    def add_user(
        self,
        username: str,
        password: str,
        role: RoleName,
        *,
        institution_id: Optional[int] = None,
        district_id: Optional[int] = None,
        is_ministry_user: bool = False,
        is_active: bool = True,
    ) -> User:
        role_row = self.role_named(role.value)
        user = User(
            user_id=self.next_id("users"),
            username=username,
            first_name=username.capitalize(),
            last_name="Test",
            email=f"{username}@example.org",
            role_id=role_row.role_id,
            role_name=role_row.role_name,
            institution_id=institution_id,
            district_id=district_id,
            is_ministry_user=is_ministry_user,
            is_active=is_active,
        )
        self.users[user.user_id] = user
        self.password_hashes[user.user_id] = generate_password_hash(password)
        return user

    def add_student(self, institution_id: int, unique_id: str, first_name: str = "Ana", last_name: str = "Pérez") -> Student:
        student = Student(
            student_id=self.next_id("students"),
            institution_id=institution_id,
            student_unique_id=unique_id,
            first_name=first_name,
            last_name=last_name,
            enrollment_date=FIXED_NOW.date(),
        )
        self.students[student.student_id] = student
        return student

    def add_group(self, institution_id: int, name: str, academic_year: str = "2025-2026") -> StudentGroup:
        group = StudentGroup(
            group_id=self.next_id("groups"),
            institution_id=institution_id,
            group_name=name,
            academic_year=academic_year,
            description=None,
            is_active=True,
        )
        self.groups[group.group_id] = group
        return group

    def add_member(self, group_id: int, student_id: int) -> None:
        self.members[(group_id, student_id)] = FIXED_NOW

    # ---- lookups shared by the fakes ----
    def district_of(self, institution_id: int) -> Optional[int]:
        institution = self.institutions.get(int(institution_id))
        return institution.district_id if institution else None

    def student_institution(self, student_id: int) -> Optional[int]:
        student = self.students.get(int(student_id))
        return student.institution_id if student else None

    def inferred_group(self, student_id: int) -> Optional[int]:
        groups = [g for (g, s) in self.members if s == int(student_id)]
        return min(groups) if groups else None

    def scope_authorizer(self) -> ScopeAuthorizer:
        def via_student(rows):
            def resolve(resource_id):
                row = rows.get(int(resource_id))
                return self.student_institution(row.student_id) if row else None

            return resolve

        def institution_exists(institution_id):
            return institution_id if int(institution_id) in self.institutions else None

        def group_institution(group_id):
            group = self.groups.get(int(group_id))
            return group.institution_id if group else None

        return ScopeAuthorizer(
            resolvers={
                ResourceKind.INSTITUTION: institution_exists,
                ResourceKind.STUDENT: self.student_institution,
                ResourceKind.GROUP: group_institution,
                ResourceKind.ATTENDANCE_RECORD: via_student(self.attendance),
                ResourceKind.EXCUSE: via_student(self.excuses),
                ResourceKind.BIOMETRIC_TEMPLATE: via_student(self.templates),
            },
            district_of=self.district_of,
        )


class FakeDistricts:
    def __init__(self, world: World):
        self.w = world

    def create(self, *, name, regional_district_code, contact_info, is_active):
        district = self.w.add_district(name, regional_district_code)
        self.w.districts[district.district_id] = dataclasses.replace(
            district, contact_info=contact_info, is_active=is_active
        )
        return district.district_id

    def get_by_id(self, district_id):
        return self.w.districts.get(int(district_id))

    def get_by_code(self, regional_district_code):
        return next(
            (d for d in self.w.districts.values() if d.regional_district_code == regional_district_code), None
        )

    def list(self, *, filters, page):
        rows = [
            d
            for d in self.w.districts.values()
            if (not filters.name or filters.name.lower() in d.name.lower())
            and (filters.is_active is None or d.is_active == filters.is_active)
        ]
        return _page(rows, page)

    def update(self, district_id, changes):
        self.w.districts[int(district_id)] = dataclasses.replace(self.w.districts[int(district_id)], **changes)
        return True

    def delete(self, district_id):
        if any(i.district_id == int(district_id) for i in self.w.institutions.values()):
            raise ConflictError("No se puede eliminar: el registro tiene datos asociados.")
        return self.w.districts.pop(int(district_id), None) is not None


class FakeInstitutions:
    def __init__(self, world: World):
        self.w = world

    def create(self, *, name, district_id, address, subscription_status, configuration_data):
        institution = self.w.add_institution(name, district_id)
        self.w.institutions[institution.institution_id] = dataclasses.replace(
            institution,
            address=address,
            subscription_status=subscription_status,
            configuration_data=configuration_data,
        )
        return institution.institution_id

    def get_by_id(self, institution_id):
        return self.w.institutions.get(int(institution_id))

    def list(self, *, filters, page):
        rows = [
            i
            for i in self.w.institutions.values()
            if (filters.district_id is None or i.district_id == filters.district_id)
            and (not filters.name or filters.name.lower() in i.name.lower())
            and (not filters.subscription_status or i.subscription_status == filters.subscription_status)
        ]
        return _page(rows, page)

    def update(self, institution_id, changes):
        current = self.w.institutions[int(institution_id)]
        self.w.institutions[int(institution_id)] = dataclasses.replace(current, **changes)
        return True

    def delete(self, institution_id):
        if any(s.institution_id == int(institution_id) for s in self.w.students.values()):
            raise ConflictError("No se puede eliminar: el registro tiene datos asociados.")
        return self.w.institutions.pop(int(institution_id), None) is not None


class FakeRoles:
    def __init__(self, world: World):
        self.w = world

    def create(self, *, role_name, description, is_active):
        role = self.w.add_role(role_name)
        self.w.roles[role.role_id] = dataclasses.replace(role, description=description, is_active=is_active)
        return role.role_id

    def get_by_id(self, role_id):
        return self.w.roles.get(int(role_id))

    def get_by_name(self, role_name):
        return next((r for r in self.w.roles.values() if r.role_name == role_name), None)

    def list(self, *, page):
        return _page(self.w.roles.values(), page)

    def update(self, role_id, changes):
        self.w.roles[int(role_id)] = dataclasses.replace(self.w.roles[int(role_id)], **changes)
        return True

    def delete(self, role_id):
        if any(u.role_id == int(role_id) for u in self.w.users.values()):
            raise ConflictError("No se puede eliminar: el registro tiene datos asociados.")
        return self.w.roles.pop(int(role_id), None) is not None


class FakeUsers:
    def __init__(self, world: World):
        self.w = world

    def _view(self, user: Optional[User]) -> Optional[User]:
        if user is None:
            return None
        district = self.w.district_of(user.institution_id) if user.institution_id else None
        return dataclasses.replace(user, institution_district_id=district)

    def create(self, user):
        user_id = self.w.next_id("users")
        role = self.w.roles[user.role_id]
        self.w.users[user_id] = User(
            user_id=user_id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            role_id=role.role_id,
            role_name=role.role_name,
            institution_id=user.institution_id,
            district_id=user.district_id,
            is_ministry_user=user.is_ministry_user,
            is_active=user.is_active,
        )
        self.w.password_hashes[user_id] = user.password_hash
        return user_id

    def get_by_id(self, user_id):
        return self._view(self.w.users.get(int(user_id)))

    def get_by_username(self, username):
        return self._view(next((u for u in self.w.users.values() if u.username == username), None))

    def get_by_email(self, email):
        return self._view(next((u for u in self.w.users.values() if u.email == email), None))

    def list(self, *, visibility, filters, page):
        rows = []
        if visibility.deny:
            return _page(rows, page)
        for user in map(self._view, self.w.users.values()):
            if visibility.roles is not None and user.role_name not in visibility.roles:
                continue
            if user.role_name in visibility.excluded_roles:
                continue
            if visibility.institution_id is not None and user.institution_id != visibility.institution_id:
                continue
            if visibility.district_id is not None and visibility.district_id not in (
                user.district_id,
                user.institution_district_id,
            ):
                continue
            if filters.role_id is not None and user.role_id != filters.role_id:
                continue
            if filters.institution_id is not None and user.institution_id != filters.institution_id:
                continue
            if filters.is_active is not None and user.is_active != filters.is_active:
                continue
            rows.append(user)
        return _page(rows, page)

    def update(self, user_id, changes):
        changes = dict(changes)
        if "password_hash" in changes:
            self.w.password_hashes[int(user_id)] = changes.pop("password_hash")
        if "role_id" in changes:
            changes["role_name"] = self.w.roles[changes["role_id"]].role_name
        self.w.users[int(user_id)] = dataclasses.replace(self.w.users[int(user_id)], **changes)
        return True


class FakeCredentials:
    def __init__(self, world: World):
        self.w = world

    def _credentials(self, user: Optional[User]) -> Optional[Credentials]:
        if user is None:
            return None
        return Credentials(
            user_id=user.user_id,
            username=user.username,
            password_hash=self.w.password_hashes[user.user_id],
            role_id=user.role_id,
            role_name=user.role_name,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            institution_id=user.institution_id,
            district_id=user.district_id,
            is_ministry_user=user.is_ministry_user,
            is_active=user.is_active,
        )

    def get_by_username(self, username):
        return self._credentials(next((u for u in self.w.users.values() if u.username == username), None))

    def get_by_id(self, user_id):
        return self._credentials(self.w.users.get(int(user_id)))


class FakeStudents:
    def __init__(self, world: World):
        self.w = world

    def create(self, student):
        if self.get_by_unique_id(institution_id=student.institution_id, student_unique_id=student.student_unique_id):
            raise ConflictError("Conflicto: Ya existe un estudiante con ese ID Único en esta institución.")
        row = self.w.add_student(
            student.institution_id, student.student_unique_id, student.first_name, student.last_name
        )
        self.w.students[row.student_id] = dataclasses.replace(
            row, gender=student.gender, date_of_birth=student.date_of_birth, status=student.status
        )
        return row.student_id

    def get_by_id(self, student_id):
        return self.w.students.get(int(student_id))

    def get_by_unique_id(self, *, institution_id, student_unique_id):
        return next(
            (
                s
                for s in self.w.students.values()
                if s.institution_id == int(institution_id) and s.student_unique_id == student_unique_id
            ),
            None,
        )

    def list(self, *, scope, filters, page):
        rows = [
            s
            for s in self.w.students.values()
            if scope.admits(s.institution_id, self.w.district_of(s.institution_id))
            and (filters.institution_id is None or s.institution_id == filters.institution_id)
            and (filters.status is None or s.status == filters.status)
            and (
                not filters.search
                or filters.search.lower()
                in f"{s.student_unique_id} {s.first_name} {s.last_name}".lower()
            )
        ]
        return _page(rows, page)

    def list_with_groups(self, *, institution_id):
        rows = []
        for s in self.w.students.values():
            if s.institution_id != int(institution_id):
                continue
            group_id = self.w.inferred_group(s.student_id)
            group = self.w.groups.get(group_id) if group_id else None
            rows.append(StudentWithGroup(student=s, group_id=group_id, group_name=group.group_name if group else None))
        return rows

    def update(self, student_id, changes):
        self.w.students[int(student_id)] = dataclasses.replace(self.w.students[int(student_id)], **changes)
        return True


class FakeMembershipTransaction:
    """Buffers inserts; they reach the world only when the block exits cleanly."""

    def __init__(self, world: World):
        self.w = world
        self.pending: Set[tuple] = set()

    def student_institutions(self, student_ids: Sequence[int]) -> Dict[int, int]:
        return {s: self.w.students[s].institution_id for s in student_ids if s in self.w.students}

    def existing_members(self, group_id: int, student_ids: Sequence[int]) -> Set[int]:
        return {s for s in student_ids if (int(group_id), s) in self.w.members}

    def add_members(self, group_id: int, student_ids: Sequence[int]) -> None:
        self.pending.update((int(group_id), s) for s in student_ids)


class FakeGroups:
    def __init__(self, world: World):
        self.w = world
        self.transactions = 0
        self.rollbacks = 0

    def create(self, *, institution_id, group_name, academic_year, description, is_active):
        group = self.w.add_group(institution_id, group_name, academic_year)
        self.w.groups[group.group_id] = dataclasses.replace(group, description=description, is_active=is_active)
        return group.group_id

    def get_by_id(self, group_id):
        return self.w.groups.get(int(group_id))

    def find_by_name(self, *, institution_id, group_name, academic_year):
        return next(
            (
                g
                for g in self.w.groups.values()
                if g.institution_id == int(institution_id)
                and g.group_name == group_name
                and g.academic_year == academic_year
            ),
            None,
        )

    def list(self, *, scope, filters, page):
        rows = [
            g
            for g in self.w.groups.values()
            if scope.admits(g.institution_id, self.w.district_of(g.institution_id))
            and (not filters.academic_year or g.academic_year == filters.academic_year)
            and (filters.is_active is None or g.is_active == filters.is_active)
        ]
        return _page(rows, page)

    def update(self, group_id, changes):
        self.w.groups[int(group_id)] = dataclasses.replace(self.w.groups[int(group_id)], **changes)
        return True

    @contextmanager
    def membership_transaction(self):
        self.transactions += 1
        tx = FakeMembershipTransaction(self.w)
        try:
            yield tx
        except Exception:
            self.rollbacks += 1
            raise
        for key in tx.pending:
            self.w.members.setdefault(key, FIXED_NOW)

    def remove_member(self, *, group_id, student_id):
        return self.w.members.pop((int(group_id), int(student_id)), None) is not None

    def list_members(self, *, group_id, page):
        rows = [
            GroupMember(student=self.w.students[s], assignment_date=at)
            for (g, s), at in sorted(self.w.members.items())
            if g == int(group_id)
        ]
        return _page(rows, page)

    def group_of_student(self, student_id):
        group_id = self.w.inferred_group(student_id)
        return self.w.groups.get(group_id) if group_id else None


class FakeAttendance:
    def __init__(self, world: World):
        self.w = world

    def _view(self, record: Optional[AttendanceRecord]) -> Optional[AttendanceRecord]:
        if record is None:
            return None
        student = self.w.students[record.student_id]
        return dataclasses.replace(
            record,
            student_unique_id=student.student_unique_id,
            first_name=student.first_name,
            last_name=student.last_name,
        )

    def create(self, record):
        # unique key (StudentID, AttendanceDate)
        if any(
            r.student_id == record.student_id and r.attendance_date == record.attendance_date
            for r in self.w.attendance.values()
        ):
            raise ValidationError(ATTENDANCE_EXISTS_TODAY)
        record_id = self.w.next_id("attendance")
        self.w.attendance[record_id] = AttendanceRecord(
            record_id=record_id,
            student_id=record.student_id,
            institution_id=record.institution_id,
            group_id=self.w.inferred_group(record.student_id),
            attendance_timestamp=record.attendance_timestamp,
            attendance_date=record.attendance_date,
            recorded_by_user_id=record.recorded_by_user_id,
            attendance_type=record.attendance_type,
            notes=record.notes,
        )
        return record_id

    def get_by_id(self, record_id):
        return self._view(self.w.attendance.get(int(record_id)))

    def exists_for_day(self, *, student_id, attendance_date):
        return any(
            r.student_id == int(student_id) and r.attendance_date == attendance_date
            for r in self.w.attendance.values()
        )

    def list(self, *, scope, filters, page):
        rows = []
        for r in self.w.attendance.values():
            owner = self.w.student_institution(r.student_id)
            if not scope.admits(owner, self.w.district_of(owner)):
                continue
            if filters.start_date and r.attendance_date < filters.start_date:
                continue
            if filters.end_date and r.attendance_date > filters.end_date:
                continue
            if filters.student_id is not None and r.student_id != filters.student_id:
                continue
            if filters.group_id is not None and r.group_id != filters.group_id:
                continue
            rows.append(self._view(r))
        return _page(rows, page)

    def update(self, record_id, changes):
        self.w.attendance[int(record_id)] = dataclasses.replace(self.w.attendance[int(record_id)], **changes)
        return True

    def delete(self, record_id):
        return self.w.attendance.pop(int(record_id), None) is not None


class FakeExcuses:
    def __init__(self, world: World):
        self.w = world

    def create(self, excuse):
        # unique key (StudentID, ExcuseDate)
        if any(e.student_id == excuse.student_id and e.excuse_date == excuse.excuse_date for e in self.w.excuses.values()):
            raise ValidationError(EXCUSE_EXISTS_FOR_DATE)
        excuse_id = self.w.next_id("excuses")
        self.w.excuses[excuse_id] = DailyExcuse(
            excuse_id=excuse_id,
            student_id=excuse.student_id,
            group_id=self.w.inferred_group(excuse.student_id),
            institution_id=excuse.institution_id,
            excuse_date=excuse.excuse_date,
            marked_by_user_id=excuse.marked_by_user_id,
            notes=excuse.notes,
        )
        return excuse_id

    def get_by_id(self, excuse_id):
        return self.w.excuses.get(int(excuse_id))

    def exists_for_date(self, *, student_id, excuse_date):
        return any(e.student_id == int(student_id) and e.excuse_date == excuse_date for e in self.w.excuses.values())

    def list(self, *, scope, filters, page):
        rows = []
        for e in self.w.excuses.values():
            owner = self.w.student_institution(e.student_id)
            if not scope.admits(owner, self.w.district_of(owner)):
                continue
            if filters.start_date and e.excuse_date < filters.start_date:
                continue
            if filters.end_date and e.excuse_date > filters.end_date:
                continue
            if filters.student_id is not None and e.student_id != filters.student_id:
                continue
            if filters.is_active is not None and e.is_active != filters.is_active:
                continue
            rows.append(e)
        return _page(rows, page)

    def update(self, excuse_id, changes):
        self.w.excuses[int(excuse_id)] = dataclasses.replace(self.w.excuses[int(excuse_id)], **changes)
        return True

    def delete(self, excuse_id):
        return self.w.excuses.pop(int(excuse_id), None) is not None


class FakeBiometrics:
    def __init__(self, world: World):
        self.w = world

    def upsert(self, enrollment):
        existing = next((t for t in self.w.templates.values() if t.student_id == enrollment.student_id), None)
        template_id = existing.template_id if existing else self.w.next_id("templates")
        self.w.templates[template_id] = BiometricTemplate(
            template_id=template_id,
            student_id=enrollment.student_id,
            template_data=enrollment.template_data,
            finger_index=enrollment.finger_index,
            enrolled_by_user_id=enrollment.enrolled_by_user_id,
            enrollment_timestamp=FIXED_NOW,
        )
        return template_id, existing is None

    def get_by_student(self, student_id):
        return next((t for t in self.w.templates.values() if t.student_id == int(student_id)), None)

    def delete(self, template_id):
        return self.w.templates.pop(int(template_id), None) is not None


def make_actor(
    role: RoleName,
    *,
    user_id: int = 100,
    institution_id: Optional[int] = None,
    district_id: Optional[int] = None,
    is_ministry_user: bool = False,
) -> Actor:
    return Actor(
        user_id=user_id,
        role_id=list(RoleName).index(role) + 1,
        role_name=role.value,
        institution_id=institution_id,
        district_id=district_id,
        is_ministry_user=is_ministry_user,
    )


def build_test_container(world: World) -> Container:
    scope = world.scope_authorizer()
    tokens = TokenService(JWT_SECRET, timedelta(hours=1))
    districts = FakeDistricts(world)
    institutions = FakeInstitutions(world)
    roles = FakeRoles(world)
    return Container(
        conn=None,
        token_service=tokens,
        scope=scope,
        auth_service=AuthService(FakeCredentials(world), tokens),
        district_service=DistrictService(districts),
        institution_service=InstitutionService(institutions, districts, scope),
        role_service=RoleService(roles),
        user_service=UserService(FakeUsers(world), roles, institutions, districts, scope),
        student_service=StudentService(FakeStudents(world), scope),
        group_service=GroupService(FakeGroups(world), scope),
        attendance_service=AttendanceService(FakeAttendance(world), scope),
        excuse_service=ExcuseService(FakeExcuses(world), scope),
        biometric_service=BiometricService(FakeBiometrics(world), scope),
    )


class ScriptedCursor:
    """Cursor double: records statements and hands out queued `fetchone` rows."""

    def __init__(self, events: list, rows: Sequence[Optional[dict]] = (), lastrowid: int = 0):
        self._events = events
        self._rows = list(rows)
        self.executed: list = []
        self.rowcount = 1
        self.lastrowid = lastrowid

    def execute(self, sql, params=()):
        self.executed.append((" ".join(sql.split()), tuple(params)))

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        return []

    def close(self):
        self._events.append("cursor.close")


class ScriptedConnection:
    def __init__(self, rows: Sequence[Optional[dict]] = (), lastrowid: int = 0, fail_on: Optional[str] = None):
        self.events: list = []
        self.cur = ScriptedCursor(self.events, rows, lastrowid)
        self._fail_on = fail_on

    def _step(self, name):
        self.events.append(name)
        if name == self._fail_on:
            raise RuntimeError(f"{name} failed")

    def start_transaction(self):
        self._step("start_transaction")

    def cursor(self, dictionary=True):
        return self.cur

    def commit(self):
        self._step("commit")

    def rollback(self):
        self._step("rollback")


class ScriptedConnFactory:
    """Stands in for `DatabaseConnection`: hands out one connection, counts releases."""

    def __init__(self, conn: ScriptedConnection):
        self.conn = conn
        self.released = 0

    def connect(self):
        return self.conn

    def release(self, conn):
        assert conn is self.conn
        self.released += 1
