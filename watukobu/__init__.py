"""Watu Kobu Collections Service

Backs the debt-collection workflow of PT. Watu Kobu Multiniaga:
- Maintains the asset (loan case) registry and bank imports
- Assigns cases to field collectors by current workload
- Takes in visit and payment evidence and runs the approval flow
- Serves admin, management and collector dashboards
- Generates warning letters and weekly bank reports
"""

__version__ = "1.0.0"
