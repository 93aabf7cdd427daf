# Models package - normalized database models
from prospector.models.user import User, Organization, Role, Permission, RolePermission, UserRole
from prospector.models.company import Company, CompanyTag, CompanyClassification
from prospector.models.company_list import CompanyList, CompanyListItem, ITEM_STATUSES
