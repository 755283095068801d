"""HR domain - Employees, shifts and clocking"""
