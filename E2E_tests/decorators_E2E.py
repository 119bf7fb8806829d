"""This file contains decorators used to inject mock services into tests."""


def with_mock_service(mock_service_class):
    """
    Decorator to inject a fresh mock service into a test function.

    The mock service is appended after the positional arguments the test is
    called with, so test methods receive it right after `self`. The wrapper
    keeps a bare signature so pytest does not try to resolve it as a fixture.

    Args:
        mock_service_class: The class of the mock service to inject.
    """

    def decorator(test_func):
        def wrapper(*args, **kwargs):
            # Create an instance of the mock service
            mock_service = mock_service_class()
            # Inject the mock service into the test function
            return test_func(*args, mock_service, **kwargs)
        wrapper.__name__ = test_func.__name__
        wrapper.__doc__ = test_func.__doc__
        return wrapper
    return decorator
