"""Sample tasks written to an empty store on first start."""

SEED_TASKS = [
    {
        "id": 1,
        "title": "Complete MEAN Stack Project",
        "description": "Build a full-stack task management application using MongoDB, Express.js, Angular, and Node.js",
        "priority": "High",
        "dueDate": "2025-09-15",
        "status": "Pending",
        "createdAt": "2025-08-20T10:00:00Z",
        "updatedAt": "2025-08-20T10:00:00Z",
    },
    {
        "id": 2,
        "title": "Study Angular Framework",
        "description": "Learn Angular concepts including components, services, routing, and data binding",
        "priority": "Medium",
        "dueDate": "2025-08-30",
        "status": "Completed",
        "createdAt": "2025-08-18T14:30:00Z",
        "updatedAt": "2025-08-21T09:15:00Z",
    },
    {
        "id": 3,
        "title": "Setup Development Environment",
        "description": "Install Node.js, MongoDB, Angular CLI, and VS Code with necessary extensions",
        "priority": "High",
        "dueDate": "2025-08-22",
        "status": "Completed",
        "createdAt": "2025-08-17T11:20:00Z",
        "updatedAt": "2025-08-19T16:45:00Z",
    },
    {
        "id": 4,
        "title": "Design Database Schema",
        "description": "Plan the MongoDB collection structure for tasks, users, and categories",
        "priority": "Medium",
        "dueDate": "2025-09-01",
        "status": "Pending",
        "createdAt": "2025-08-19T13:10:00Z",
        "updatedAt": "2025-08-19T13:10:00Z",
    },
    {
        "id": 5,
        "title": "Create REST API Endpoints",
        "description": "Develop Express.js routes for CRUD operations on tasks",
        "priority": "High",
        "dueDate": "2025-09-05",
        "status": "Pending",
        "createdAt": "2025-08-20T08:45:00Z",
        "updatedAt": "2025-08-20T08:45:00Z",
    },
]
