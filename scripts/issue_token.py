"""
Mint a bearer token for an employee, for local testing against the API.

    python scripts/issue_token.py ADMIN-001 --minutes 120
"""
import argparse
from datetime import timedelta

from hrms.database import session_scope
from hrms.models.employee import Employee
from hrms.services.auth import create_access_token


def issue(employee_code: str, minutes: int):
    with session_scope() as db:
        employee = db.query(Employee).filter(Employee.employee_code == employee_code).first()
        if not employee:
            print(f"Error: employee {employee_code} not found")
            return
        token = create_access_token(employee.id, employee.role, expires_delta=timedelta(minutes=minutes))
        print(f"Employee: {employee.full_name} ({employee.role.value})")
        print(token)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Issue an access token")
    parser.add_argument("employee_code")
    parser.add_argument("--minutes", type=int, default=60)
    args = parser.parse_args()
    issue(args.employee_code, args.minutes)
