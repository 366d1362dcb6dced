from flask_restx import Namespace, Resource

from ..models import Role
from ..services import dashboard_service
from ..utils.util import role_required

dashboard_ns = Namespace('dashboard', description='Operations related to dashboard statistics')


@dashboard_ns.route('/analytics')
class DashboardAnalytics(Resource):
    @role_required(Role.ADMIN, Role.SUPERADMIN)
    def get(self):
        """Platform overview, 30-day trends, distributions, top vets and recent activity"""
        return dashboard_service.get_analytics(), 200
