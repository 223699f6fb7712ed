"""Error handling and custom exception classes for the commute permit service."""

from flask import jsonify, request
from werkzeug.exceptions import HTTPException
from commute_permits.utils.logging_config import get_logger, ERROR_LOGGER
from functools import wraps


# Custom exception classes
class CommutePermitException(Exception):
    """Base exception class for the commute permit service."""
    status_code = 500


class ValidationError(CommutePermitException):
    """Raised when a request is rejected before any side effect."""
    status_code = 400


class NotFoundError(CommutePermitException):
    """Raised when a referenced document, permit or employee is missing."""
    status_code = 404


class ExternalCollaboratorError(CommutePermitException):
    """Raised when a store, messaging or renderer call fails."""
    status_code = 502


class ArtifactRenderError(ExternalCollaboratorError):
    """Raised when the permit artifact cannot be rendered or stored."""
    pass


# Logger for error handling
logger = get_logger(ERROR_LOGGER)


def init_error_handlers(app):
    """Initialize JSON error handlers for the Flask application."""
    
    @app.errorhandler(CommutePermitException)
    def handle_domain_error(error):
        if error.status_code >= 500:
            logger.error(f"Collaborator failure: {request.url} - {str(error)}", exc_info=True)
        return jsonify({
            'success': False,
            'error': str(error)
        }), error.status_code
    
    @app.errorhandler(400)
    def bad_request(error):
        logger.error(f"Bad request: {request.url} - {str(error)}")
        return jsonify({
            'success': False,
            'error': str(error.description) if hasattr(error, 'description') else 'Invalid request'
        }), 400
    
    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify({
            'success': False,
            'error': 'Authentication required'
        }), 401
    
    @app.errorhandler(403)
    def forbidden(error):
        logger.error(f"Forbidden access attempt: {request.url}")
        return jsonify({
            'success': False,
            'error': 'Access denied'
        }), 403
    
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'success': False,
            'error': 'The requested resource was not found'
        }), 404
    
    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'success': False,
            'error': 'The method is not allowed for this endpoint'
        }), 405
    
    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        logger.error(f"Rate limit exceeded: {request.url} from {request.remote_addr}")
        return jsonify({
            'success': False,
            'error': 'Too many requests. Please try again later.'
        }), 429
    
    @app.errorhandler(Exception)
    def handle_exception(error):
        if isinstance(error, HTTPException):
            return jsonify({
                'success': False,
                'error': error.description
            }), error.code
        
        logger.error(f"Unhandled exception: {str(error)}", exc_info=True)
        return jsonify({
            'success': False,
            'error': 'An unexpected error occurred'
        }), 500


def handle_error_response(error, status_code=500):
    """Helper function to create standardized error responses."""
    return jsonify({
        'success': False,
        'error': str(error)
    }), status_code


def error_handler(f):
    """Decorator to map domain errors raised in route functions to JSON responses."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ValidationError as e:
            logger.info(f"Validation error: {str(e)}")
            return handle_error_response(str(e), 400)
        except NotFoundError as e:
            return handle_error_response(str(e), 404)
        except ExternalCollaboratorError as e:
            logger.error(f"Collaborator error in {f.__name__}: {str(e)}", exc_info=True)
            return handle_error_response(str(e), 502)
    return decorated_function
