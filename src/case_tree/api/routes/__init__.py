from case_tree.api.routes.flow import flow_bp
from case_tree.api.routes.cases import cases_bp
from case_tree.api.routes.monitoring import monitoring_bp

__all__ = ['flow_bp', 'cases_bp', 'monitoring_bp']
