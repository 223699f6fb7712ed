from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import datetime

from commute_permits import db
from commute_permits.services import get_services
from commute_permits.utils.logging_config import get_logger

logger = get_logger(__name__)


class ExpirationScheduler:
    """Runs the expiration monitor and the lapsed-permit sweep independently of requests."""
    
    def __init__(self, app):
        self.scheduler = BackgroundScheduler()
        self.app = app
    
    def start(self):
        """Start the scheduler"""
        config = self.app.config
        
        # Daily expiration monitor
        self.scheduler.add_job(
            func=self.daily_expiration_check,
            trigger=CronTrigger(hour=config['EXPIRATION_MONITOR_HOUR'], minute=config['EXPIRATION_MONITOR_MINUTE']),
            id='daily_expiration_check',
            name='Daily document expiration check',
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        
        # Permit status sweep shortly after midnight
        self.scheduler.add_job(
            func=self.expire_lapsed_permits,
            trigger=CronTrigger(hour=0, minute=5),
            id='expire_lapsed_permits',
            name='Mark lapsed permits as expired',
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        
        self.scheduler.start()
        logger.info("Expiration scheduler started")
    
    def stop(self):
        """Stop the scheduler"""
        self.scheduler.shutdown()
        logger.info("Expiration scheduler stopped")
    
    def daily_expiration_check(self):
        """Send expiration warnings, expired alerts and admin escalations"""
        logger.info(f"Running daily expiration check at {datetime.utcnow()}")
        
        with self.app.app_context():
            try:
                return get_services(self.app).monitor.run()
            except Exception as e:
                db.session.rollback()
                logger.error(f"Expiration monitor job failed: {e}", exc_info=True)
                raise
    
    def expire_lapsed_permits(self):
        with self.app.app_context():
            return get_services(self.app).monitor.expire_lapsed_permits()
