from mediatank.models.user import User, UserRole, MembershipType
from mediatank.models.media import Media, MediaType
from mediatank.models.rating import Rating
from mediatank.models.purchase import Purchase, PurchaseStatus
from mediatank.models.notification import Notification
from mediatank.models.verification import VerificationCode
from mediatank.models.reminder_log import ReminderLog
from mediatank.models.job_run import JobRun, JobStatus
from mediatank.models.upload_payment import UploadPayment
from mediatank.models.message import Message
from mediatank.models.comment import Comment
from mediatank.models.saved_media import SavedMedia
