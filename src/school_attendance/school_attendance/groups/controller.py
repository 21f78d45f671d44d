from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id
from ..common.web import current_actor, json_body, json_response, query_args, role_guard
from ..container import Container
from ..core.enums import RoleName
from .service import assignment_message


def register(app: Flask, container: Container) -> None:
    roles_required = role_guard(container.token_service)
    readers = (RoleName.APP_ADMIN, RoleName.INSTITUTION_ADMIN, RoleName.DISTRICT_ADMIN, RoleName.MINISTRY_ADMIN)
    service = container.group_service

    @app.route("/api/student-groups", methods=["POST"], endpoint="create_group")
    @roles_required(RoleName.INSTITUTION_ADMIN)
    def create_group():
        group = service.create(actor=current_actor(), payload=json_body())
        return json_response({"message": "Grupo creado exitosamente.", "group": group.to_dict()}, 201)

    @app.route("/api/student-groups", methods=["GET"], endpoint="list_groups")
    @roles_required(*readers)
    def list_groups():
        page = service.list(actor=current_actor(), args=query_args())
        return json_response({"groups": [g.to_dict() for g in page.items], "pagination": page.pagination()})

    @app.route("/api/student-groups/<group_id>", methods=["GET"], endpoint="get_group")
    @roles_required(*readers, RoleName.TEACHER)
    def get_group(group_id: str):
        group = service.get(actor=current_actor(), group_id=parse_id(group_id, "ID del grupo"))
        return json_response({"group": group.to_dict()})

    @app.route("/api/student-groups/<group_id>", methods=["PUT"], endpoint="update_group")
    @roles_required(RoleName.INSTITUTION_ADMIN)
    def update_group(group_id: str):
        group = service.update(actor=current_actor(), group_id=parse_id(group_id, "ID del grupo"), payload=json_body())
        return json_response({"message": "Grupo actualizado exitosamente.", "group": group.to_dict()})

    @app.route("/api/student-groups/<group_id>/members", methods=["POST"], endpoint="assign_group_members")
    @roles_required(RoleName.INSTITUTION_ADMIN)
    def assign_group_members(group_id: str):
        result = service.assign_members(
            actor=current_actor(), group_id=parse_id(group_id, "ID del grupo"), payload=json_body()
        )
        return json_response(
            {
                "message": assignment_message(result),
                "groupId": result.group_id,
                "assigned": result.assigned,
                "alreadyMembers": result.already_members,
            }
        )

    @app.route(
        "/api/student-groups/<group_id>/members/<student_id>",
        methods=["DELETE"],
        endpoint="remove_group_member",
    )
    @roles_required(RoleName.INSTITUTION_ADMIN)
    def remove_group_member(group_id: str, student_id: str):
        service.remove_member(
            actor=current_actor(),
            group_id=parse_id(group_id, "ID del grupo"),
            student_id=parse_id(student_id, "ID del estudiante"),
        )
        return json_response({"message": "Estudiante removido del grupo exitosamente."})

    @app.route("/api/student-groups/<group_id>/members", methods=["GET"], endpoint="list_group_members")
    @roles_required(*readers, RoleName.TEACHER)
    def list_group_members(group_id: str):
        gid = parse_id(group_id, "ID del grupo")
        page = service.list_members(actor=current_actor(), group_id=gid, args=query_args())
        return json_response(
            {
                "groupId": gid,
                "members": [m.to_dict() for m in page.items],
                "pagination": page.pagination(),
            }
        )

    @app.route("/api/student-groups/student/<student_id>/group", methods=["GET"], endpoint="student_group")
    @roles_required(*readers, RoleName.TEACHER)
    def student_group(student_id: str):
        group = service.group_of_student(actor=current_actor(), student_id=parse_id(student_id, "ID del estudiante"))
        return json_response({"group": group.to_dict()})
