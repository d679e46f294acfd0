from fastapi import APIRouter
from hrms.routers import attendance, dashboard, employees, holidays, leave, master, payroll, wfh

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(attendance.router, tags=["Attendance"])
api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(wfh.router, tags=["Work From Home"])
api_router.include_router(payroll.router, tags=["Payroll"])
api_router.include_router(holidays.router, tags=["Holidays"])
api_router.include_router(employees.router, tags=["Employees"])
api_router.include_router(master.router, tags=["Master Data"])
api_router.include_router(dashboard.router, tags=["Dashboard"])
