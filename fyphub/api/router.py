from fastapi import APIRouter

from fyphub.api.endpoints import (
    advisors,
    auth,
    dashboard,
    documents,
    evaluations,
    explorer,
    feedback,
    groups,
    notifications,
    projects,
    repositories,
    rules,
    search,
    tasks,
    users,
)

PROJECT_PREFIX = "/groups/{group_user_name}/projects/{project_id}"

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(rules.router, prefix="/rules", tags=["rules"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(projects.router, prefix="/groups/{group_user_name}/projects", tags=["projects"])
api_router.include_router(projects.top_router, prefix="/projects", tags=["projects"])
api_router.include_router(tasks.router, prefix=f"{PROJECT_PREFIX}/tasks", tags=["tasks"])
api_router.include_router(feedback.router, prefix=f"{PROJECT_PREFIX}/feedback", tags=["feedback"])
api_router.include_router(documents.router, prefix=f"{PROJECT_PREFIX}/documents", tags=["documents"])
api_router.include_router(advisors.project_router, prefix=PROJECT_PREFIX, tags=["advisors"])
api_router.include_router(evaluations.project_router, prefix=PROJECT_PREFIX, tags=["evaluations"])
api_router.include_router(repositories.router, prefix="/groups/{group_user_name}/repositories", tags=["repositories"])
api_router.include_router(explorer.router, prefix="/explorer/{group_user_name}/{repository_name}", tags=["explorer"])
api_router.include_router(advisors.router, prefix="/advisor", tags=["advisors"])
api_router.include_router(evaluations.router, prefix="/evaluator", tags=["evaluations"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(search.router, prefix="/search", tags=["search"])
