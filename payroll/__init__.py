"""Indian payroll calculation engine: income tax, TDS, statutory deductions, settlements."""
