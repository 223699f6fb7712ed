import os
from commute_permits import create_app, db
from commute_permits.models import User
from commute_permits.utils.reminder_scheduler import ExpirationScheduler


def create_initial_data(app):
    """Create the bootstrap admin account if none exists"""
    admin_email = os.getenv('BOOTSTRAP_ADMIN_EMAIL', 'admin@commute-permits.local')
    
    with app.app_context():
        admin = User.query.filter_by(email=admin_email).first()
        if not admin:
            admin = User(
                email=admin_email,
                name='Administrator',
                role='admin'
            )
            db.session.add(admin)
            db.session.commit()
            print(f"Created admin user: {admin_email}")


if __name__ == '__main__':
    # Determine the environment
    env = os.getenv('FLASK_ENV', 'development')
    
    # Create the Flask app with appropriate configuration
    app = create_app(env)
    
    # Create initial data if tables are empty
    create_initial_data(app)
    
    # Initialize and start the expiration scheduler
    scheduler = None
    if app.config['SCHEDULER_ENABLED']:
        scheduler = ExpirationScheduler(app)
        scheduler.start()
    
    print(f"Starting commute permit service in {env} mode...")
    
    # Run the app
    if env == 'development':
        app.run(debug=True, host='0.0.0.0', port=5000, use_reloader=False)
    else:
        # In production, don't use Flask's development server
        print("Production mode - use a production WSGI server like Gunicorn")
        app.run(debug=False, host='0.0.0.0', port=5000)
    
    # Clean up scheduler on exit
    if scheduler is not None:
        try:
            scheduler.stop()
        except Exception as e:
            print(f'Error stopping scheduler: {e}')
