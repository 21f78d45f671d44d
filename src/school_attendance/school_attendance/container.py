from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .auth.mysql_credentials_repository import MySQLCredentialsRepository
from .auth.service import AuthService
from .auth.tokens import TokenService
from .biometrics.mysql_biometric_repository import MySQLBiometricRepository
from .biometrics.service import BiometricService
from .common.datetime_utils import parse_duration
from .core.constants import DEFAULT_TOKEN_TTL
from .database.connection import DBConfig, DatabaseConnection
from .districts.mysql_district_repository import MySQLDistrictRepository
from .districts.service import DistrictService
from .excuses.mysql_excuse_repository import MySQLExcuseRepository
from .excuses.service import ExcuseService
from .groups.mysql_group_repository import MySQLGroupRepository
from .groups.service import GroupService
from .institutions.mysql_institution_repository import MySQLInstitutionRepository
from .institutions.service import InstitutionService
from .roles.mysql_role_repository import MySQLRoleRepository
from .roles.service import RoleService
from .scope.authorizer import ScopeAuthorizer
from .scope.mysql_scope_repository import MySQLScopeRepository
from .students.mysql_student_repository import MySQLStudentRepository
from .students.service import StudentService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import UserService


@dataclass(frozen=True)
class Container:
    """Services wired for the HTTP layer.

    `conn` is None when the container is assembled from in-memory fakes.
    """

    conn: Optional[DatabaseConnection]
    token_service: TokenService
    scope: ScopeAuthorizer

    auth_service: AuthService
    district_service: DistrictService
    institution_service: InstitutionService
    role_service: RoleService
    user_service: UserService
    student_service: StudentService
    group_service: GroupService
    attendance_service: AttendanceService
    excuse_service: ExcuseService
    biometric_service: BiometricService


def build_container(*, db_config: dict, jwt_secret: str, jwt_expires_in: str = DEFAULT_TOKEN_TTL) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    scope_repo = MySQLScopeRepository(conn)
    scope = ScopeAuthorizer(resolvers=scope_repo.resolvers(), district_of=scope_repo.district_of)
    tokens = TokenService(jwt_secret, parse_duration(jwt_expires_in))

    districts_repo = MySQLDistrictRepository(conn)
    institutions_repo = MySQLInstitutionRepository(conn)
    roles_repo = MySQLRoleRepository(conn)
    users_repo = MySQLUserRepository(conn)
    students_repo = MySQLStudentRepository(conn)
    groups_repo = MySQLGroupRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    excuses_repo = MySQLExcuseRepository(conn)
    biometrics_repo = MySQLBiometricRepository(conn)

    return Container(
        conn=conn,
        token_service=tokens,
        scope=scope,
        auth_service=AuthService(MySQLCredentialsRepository(conn), tokens),
        district_service=DistrictService(districts_repo),
        institution_service=InstitutionService(institutions_repo, districts_repo, scope),
        role_service=RoleService(roles_repo),
        user_service=UserService(users_repo, roles_repo, institutions_repo, districts_repo, scope),
        student_service=StudentService(students_repo, scope),
        group_service=GroupService(groups_repo, scope),
        attendance_service=AttendanceService(attendance_repo, scope),
        excuse_service=ExcuseService(excuses_repo, scope),
        biometric_service=BiometricService(biometrics_repo, scope),
    )
