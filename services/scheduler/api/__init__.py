from services.scheduler.api.admin_time_slots import (  # noqa: F401
    router as admin_time_slots_router,
)
from services.scheduler.api.time_slots import router as time_slots_router  # noqa: F401
from services.scheduler.api.users import router as users_router  # noqa: F401
