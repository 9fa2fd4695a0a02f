"""Hand-authored application plans used when live plan generation fails."""
from __future__ import annotations

from typing import Any, Dict

SURF_SHOP_PLAN: Dict[str, Any] = {
    "name": "SurfBoard Store",
    "description": "An online surf shop for boards, wetsuits and accessories with size guidance and secure checkout",
    "type": "E-commerce",
    "features": [
        "Product catalog with board, wetsuit and accessory categories",
        "Advanced filtering by board type, length, volume and skill level",
        "Board size recommendation quiz",
        "Product detail pages with image galleries and specs",
        "Shopping cart with quantity management",
        "Secure checkout with Stripe payments",
        "User accounts with order history",
        "Wishlist and saved boards",
        "Customer reviews and ratings",
        "Inventory tracking with low-stock alerts",
        "Admin dashboard for products and orders",
        "Order confirmation and shipping email notifications",
    ],
    "technologies": [
        "React",
        "TypeScript",
        "Tailwind CSS",
        "Express.js",
        "PostgreSQL",
        "Stripe",
    ],
    "preview": {
        "title": "SurfBoard Store - Ride the Perfect Wave",
        "description": "Find the right board for every break with expert sizing help and fast, secure checkout",
        "sections": [
            "Hero banner with featured boards",
            "Shop by category",
            "Board finder quiz",
            "Best sellers and new arrivals",
            "Customer reviews",
            "Newsletter signup",
        ],
    },
}

TASK_MANAGER_PLAN: Dict[str, Any] = {
    "name": "Task Manager Pro",
    "description": "A productivity app for capturing, organizing and tracking daily tasks and projects",
    "type": "Productivity",
    "features": [
        "Quick task capture with due dates",
        "Projects and task lists",
        "Priority levels and tags",
        "Recurring tasks and reminders",
        "Drag-and-drop board view",
        "Calendar view of upcoming work",
        "Search and filtering",
        "Progress tracking dashboard",
        "User authentication and profiles",
        "Mobile-responsive design",
    ],
    "technologies": [
        "React",
        "TypeScript",
        "Tailwind CSS",
        "Express.js",
        "PostgreSQL",
        "JWT authentication",
    ],
    "preview": {
        "title": "Task Manager Pro",
        "description": "Stay on top of everything you need to do, every day",
        "sections": [
            "Today view",
            "Project boards",
            "Calendar",
            "Productivity insights",
        ],
    },
}

BLOG_PLATFORM_PLAN: Dict[str, Any] = {
    "name": "Dynamic Blog Platform",
    "description": "A modern blogging platform with rich content management and social features",
    "type": "Content Management System",
    "features": [
        "Rich text editor with markdown support",
        "User authentication and author profiles",
        "Comment system with moderation",
        "Tag-based categorization",
        "Search functionality",
        "Social media integration",
        "SEO optimization tools",
        "Analytics dashboard",
    ],
    "technologies": [
        "React.js with Next.js",
        "Node.js/Express backend",
        "MongoDB for content storage",
        "Redis for caching",
        "Tailwind CSS for styling",
    ],
    "preview": {
        "title": "Modern Blog Platform",
        "description": "A feature-rich blogging platform with social features and content management",
        "sections": [
            "Homepage with latest posts",
            "Article reading interface",
            "Author dashboard",
            "Comment and interaction system",
        ],
    },
}

GENERIC_PLAN: Dict[str, Any] = {
    "name": "Custom Web Application",
    "description": "A tailored full-stack web application built to your specific requirements",
    "type": "Web Application",
    "features": [
        "Modern responsive user interface",
        "User authentication and authorization",
        "Database integration with CRUD operations",
        "RESTful API endpoints",
        "Real-time updates and notifications",
        "Search and filtering capabilities",
        "Admin dashboard and management tools",
        "Mobile-responsive design",
        "Security best practices implementation",
        "Performance optimization",
    ],
    "technologies": [
        "React.js with TypeScript",
        "Node.js/Express backend",
        "PostgreSQL database",
        "JWT authentication",
        "Tailwind CSS for styling",
        "WebSocket for real-time features",
    ],
    "preview": {
        "title": "Custom Web Application",
        "description": "A modern, full-featured web application tailored to your needs",
        "sections": [
            "User-friendly frontend interface",
            "Robust backend API",
            "Database schema and management",
            "Authentication and security features",
        ],
    },
}

__all__ = ["SURF_SHOP_PLAN", "TASK_MANAGER_PLAN", "BLOG_PLATFORM_PLAN", "GENERIC_PLAN"]
